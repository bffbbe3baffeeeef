"""Instance: one placed, posed use of an Instantiable."""

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from boneforge.core.math_utils import Mat4, mat4_array_to_gl
from boneforge.core.transformation import Transformation
from boneforge.skeleton.bone_pose_set import BonePoseSet

if TYPE_CHECKING:
    from boneforge.drawable.instantiable import Instantiable


class Instance:
    """Instance data for an Instantiable.

    Holds a model transformation, a BonePoseSet per bone set of the
    Instantiable, and the bone matrices for all of them laid out in the
    ranges the Instantiable assigned.  The Instantiable must outlive it and
    must not gain bone sets after instancing.
    """

    def __init__(self, instantiable: "Instantiable"):
        self.instantiable = instantiable
        self.transformation = Transformation()
        self.trans_mat: Mat4 = self.transformation.mat4()
        self.bone_poses: list[BonePoseSet] = [
            BonePoseSet(entry.bone_set) for entry in instantiable.bone_sets
        ]
        self.bone_matrices = np.zeros((instantiable.num_bone_matrices, 4, 4), dtype=np.float64)

    def set_transformation(self, transformation: Transformation) -> None:
        self.transformation = transformation.copy()
        self.trans_mat = self.transformation.mat4()

    def update(self, tick: int) -> bool:
        """Update every bone pose set for ``tick`` and gather their matrices.

        ``tick`` usually comes from a ``FrameClock`` shared by all instances.

        Returns True if any set recomputed.
        """
        changed = False
        for entry, poses in zip(self.instantiable.bone_sets, self.bone_poses):
            if poses.update(tick):
                start = entry.bone_matrix_index
                self.bone_matrices[start:start + len(poses.data)] = poses.data
                changed = True
        return changed

    def mesh_matrix(self, mesh_index: int) -> Mat4:
        """Model matrix for a mesh: instance transformation after mesh matrix."""
        mesh = self.instantiable.mesh_data(mesh_index)
        return self.trans_mat @ self.instantiable.mesh_matrices[mesh.mesh_matrix_index]

    def gl_bone_matrices(self) -> NDArray[np.float32]:
        return mat4_array_to_gl(self.bone_matrices)
