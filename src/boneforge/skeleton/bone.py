"""A single bone: rest transformation plus derived rest matrices.

A point in a bone's space is ``translate(rotate(scale(p)))`` in its parent's
space.  At rest (where the mesh is skinned) two matrices follow from that:

    ptb  parent-to-bone, the inverse of the rest transformation
    mtb  mesh-to-bone, ptb composed down the chain from the root

For a chain Root -> A -> B -> C::

    C.mtb = C.ptb @ B.ptb @ A.ptb
    animated(t) = A.pbtp(t) @ B.pbtp(t) @ C.pbtp(t) @ C.mtb @ mesh

so a skinned vertex needs a single matrix multiply at render time.
"""

from boneforge.core.math_utils import Mat4, mat4_identity
from boneforge.core.transformation import Transformation


class Bone:
    """Rest pose of one bone and the slot its skinning matrix is written to."""

    def __init__(self, transformation: Transformation, matrix_index: int = 0):
        self.transformation = transformation
        self.matrix_index = matrix_index
        self.ptb: Mat4 = mat4_identity()
        self.mtb: Mat4 = mat4_identity()

    def set_transformation(self, transformation: Transformation) -> "Bone":
        """Replace the rest transformation; rest matrices must be re-derived."""
        self.transformation = transformation
        return self

    def derive_matrices(self, is_root: bool, parent_mtb: Mat4) -> Mat4:
        """Derive ptb and mtb given the parent's mtb (ignored for a root)."""
        self.ptb = self.transformation.mat4_inverse()
        if is_root:
            self.mtb = self.ptb.copy()
        else:
            self.mtb = self.ptb @ parent_mtb
        return self.mtb

    def __str__(self) -> str:
        return f"Bone {self.matrix_index} : {self.transformation}"
