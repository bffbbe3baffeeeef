"""Per-frame pose of a single bone."""

from boneforge.core.math_utils import Mat4, mat4_identity
from boneforge.core.transformation import Transformation
from boneforge.skeleton.bone import Bone


class BonePose:
    """A live transformation override for a Bone, and the animated matrices.

    Many poses may share one Bone.  The pose starts as a copy of the bone's
    rest transformation.

    Matrices:
        pbtp          posed-bone-to-parent, ``transformation.mat4()``
        animated_btm  posed bone space to model space
        animated_mtm  mesh space to animated model space (skinning matrix)
    """

    def __init__(self, bone: Bone):
        self.bone = bone
        self._transformation = bone.transformation.copy()
        self.pbtp: Mat4 = self._transformation.mat4()
        self.animated_btm: Mat4 = mat4_identity()
        self.animated_mtm: Mat4 = mat4_identity()

    @property
    def transformation(self) -> Transformation:
        """A copy of the posed transformation; edit it and pass it back to
        ``set_transformation`` so that ``pbtp`` follows."""
        return self._transformation.copy()

    def set_transformation(self, transformation: Transformation) -> None:
        self._transformation = transformation.copy()
        self.pbtp = self._transformation.mat4()

    def transformation_reset(self) -> None:
        """Return to the bone's rest transformation."""
        self.set_transformation(self.bone.transformation)

    def derive_animation(self, is_root: bool, parent_animated_btm: Mat4) -> Mat4:
        """Derive the animated matrices given the parent's animated btm.

        A root's animated btm is just its pbtp; otherwise the parent's is
        applied after it.  Folding in the bone's rest mtb then takes mesh-space
        vertices straight to animated model space.
        """
        if is_root:
            self.animated_btm = self.pbtp.copy()
        else:
            self.animated_btm = parent_animated_btm @ self.pbtp
        self.animated_mtm = self.animated_btm @ self.bone.mtb
        return self.animated_btm

    def __str__(self) -> str:
        return f"Pose of {self.bone} posed {self._transformation}"
