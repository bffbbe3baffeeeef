"""Translation + per-axis scale + quaternion rotation value type.

A point in a transformed space maps to ``translate(rotate(scale(p)))`` in the
enclosing space, so ``mat4()`` is the TRS matrix and ``mat4_inverse()`` its
exact inverse.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from boneforge.constants import EPSILON
from boneforge.core.math_utils import (
    Mat4, Quat, Vec3,
    as_quat, as_vec3, lerp_vec3, mat4_compose, mat4_compose_inverse,
    quat_distance, quat_from_axis_angle, quat_identity, quat_multiply,
    quat_normalize, quat_rotate_vec3, quat_slerp, vec3,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Transformation:
    """Rest or pose transform of a bone relative to its parent."""
    translation: Vec3 = field(default_factory=vec3)
    rotation: Quat = field(default_factory=quat_identity)
    scale: Vec3 = field(default_factory=lambda: vec3(1.0, 1.0, 1.0))

    def __post_init__(self):
        self.translation = as_vec3(self.translation)
        self.rotation = as_quat(self.rotation)
        self.scale = as_vec3(self.scale)

    # Fluent setters

    def set_translation(self, translation: Sequence[float]) -> "Transformation":
        self.translation = as_vec3(translation)
        return self

    def set_rotation(self, rotation: Sequence[float]) -> "Transformation":
        self.rotation = as_quat(rotation)
        return self

    def set_scale(self, scale: Sequence[float]) -> "Transformation":
        self.scale = as_vec3(scale)
        return self

    def copy(self) -> "Transformation":
        return Transformation(
            translation=self.translation.copy(),
            rotation=self.rotation.copy(),
            scale=self.scale.copy(),
        )

    def copy_from(self, other: "Transformation") -> "Transformation":
        self.translation = other.translation.copy()
        self.rotation = other.rotation.copy()
        self.scale = other.scale.copy()
        return self

    # Edits

    def combine(self, base: "Transformation", other: "Transformation") -> "Transformation":
        """Set this to ``other`` applied first, then ``base``.

        Matches ``base.mat4() @ other.mat4()`` exactly when ``base`` has a
        uniform scale; with non-uniform base scale the result has no exact
        TRS form and the per-axis product is used.
        """
        translation = base.translation + quat_rotate_vec3(
            base.rotation, base.scale * other.translation)
        self.rotation = quat_multiply(base.rotation, other.rotation)
        self.scale = base.scale * other.scale
        self.translation = translation
        return self

    def translate(self, translation: Sequence[float], scale: float = 1.0) -> "Transformation":
        self.translation = self.translation + as_vec3(translation) * scale
        return self

    def rotate(self, axis: Sequence[float], angle: float) -> "Transformation":
        """Rotate by ``angle`` radians about ``axis`` after the current rotation."""
        q = quat_from_axis_angle(as_vec3(axis), angle)
        self.rotation = quat_multiply(q, self.rotation)
        return self

    # Matrices

    def mat4(self) -> Mat4:
        return mat4_compose(self.translation, self.rotation, self.scale)

    def mat4_inverse(self) -> Mat4:
        return mat4_compose_inverse(self.translation, self.rotation, self.scale)

    def mat4_after(self, pre_mat: Mat4) -> Mat4:
        """This transformation's matrix premultiplied by ``pre_mat``."""
        return pre_mat @ self.mat4()

    def from_mat4(self, m: Mat4) -> "Transformation":
        """Decompose an affine TRS matrix into this transformation.

        Shear is not representable and is discarded.  Columns with zero
        length leave the rotation undefined; identity rotation is used.
        """
        m = np.asarray(m, dtype=np.float64)
        basis = m[:3, :3]
        scale = np.linalg.norm(basis, axis=0)
        self.translation = m[:3, 3].copy()
        if np.any(scale < EPSILON):
            logger.warning("Degenerate scale %s in matrix decomposition", scale)
            self.scale = scale
            self.rotation = quat_identity()
            return self
        rot = basis / scale
        if np.linalg.det(rot) < 0:
            # Reflection goes into the x scale; rotation stays proper
            scale[0] = -scale[0]
            rot[:, 0] = -rot[:, 0]
        self.scale = scale
        self.rotation = quat_normalize(Rotation.from_matrix(rot).as_quat())
        return self

    @classmethod
    def of_mat4(cls, m: Mat4) -> "Transformation":
        return cls().from_mat4(m)

    # Comparison

    def interpolate(self, t: float, a: "Transformation", b: "Transformation") -> "Transformation":
        """Set this to the blend of ``a`` (t=0) and ``b`` (t=1)."""
        self.translation = lerp_vec3(a.translation, b.translation, t)
        self.scale = lerp_vec3(a.scale, b.scale, t)
        self.rotation = quat_slerp(a.rotation, b.rotation, t)
        return self

    def distance(self, other: "Transformation") -> float:
        """Approximate 'distance' between two transformations."""
        td = np.linalg.norm(self.translation - other.translation)
        sd = np.linalg.norm(self.scale - other.scale)
        qd = quat_distance(self.rotation, other.rotation)
        return float(td + sd + qd)

    def is_close(self, other: "Transformation", tol: float = 1e-6) -> bool:
        return (
            np.allclose(self.translation, other.translation, atol=tol)
            and np.allclose(self.scale, other.scale, atol=tol)
            and quat_distance(self.rotation, other.rotation) < tol
        )

    def __str__(self) -> str:
        return (f"Transform +{self.translation.tolist()}"
                f":@{self.rotation.tolist()}:*{self.scale.tolist()}")


def make_transformation(
    translation: Optional[Sequence[float]] = None,
    rotation: Optional[Sequence[float]] = None,
    scale: Optional[Sequence[float]] = None,
) -> Transformation:
    """Build a Transformation, leaving omitted components at identity."""
    t = Transformation()
    if translation is not None:
        t.set_translation(translation)
    if rotation is not None:
        t.set_rotation(rotation)
    if scale is not None:
        t.set_scale(scale)
    return t
