"""Instantiable: bone sets and mesh matrices shared by every instance of a model.

The mesh data itself (vertex buffers and so on) lives with the renderer; an
Instantiable only records, per mesh, which mesh matrix it uses and which
range of bone matrices it is skinned against.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from boneforge.core.math_utils import Mat4, mat4_identity
from boneforge.drawable.instance import Instance
from boneforge.skeleton.bone_set import BoneSet

logger = logging.getLogger(__name__)


@dataclass
class MeshIndexData:
    """Per-mesh indices into an Instantiable."""
    mesh_matrix_index: int
    # Half-open range of bone matrices; (0, 0) for an unskinned mesh
    bone_matrices: tuple[int, int] = (0, 0)


@dataclass
class BoneSetAndOffset:
    bone_set: BoneSet
    bone_matrix_index: int


class Instantiable:
    """Something that meshes and bone sets are added to, then instanced."""

    def __init__(self):
        self.bone_sets: list[BoneSetAndOffset] = []
        self.mesh_matrices: list[Mat4] = []
        self._mesh_data: list[MeshIndexData] = []
        self.num_bone_matrices = 0

    def add_mesh(
        self,
        parent: Optional[int] = None,
        transformation: Optional[Mat4] = None,
        bone_matrices: tuple[int, int] = (0, 0),
    ) -> int:
        """Add a mesh, optionally under a parent mesh, and return its index.

        A transformation under a parent is applied after the parent's mesh
        matrix; a parent without a transformation shares the parent's matrix.
        """
        if parent is not None:
            parent_matrix_index = self._mesh_data[parent].mesh_matrix_index
            if transformation is not None:
                self.mesh_matrices.append(self.mesh_matrices[parent_matrix_index] @ transformation)
                mesh_matrix_index = len(self.mesh_matrices) - 1
            else:
                mesh_matrix_index = parent_matrix_index
        else:
            if transformation is not None:
                self.mesh_matrices.append(transformation.copy())
            else:
                self.mesh_matrices.append(mat4_identity())
            mesh_matrix_index = len(self.mesh_matrices) - 1
        self._mesh_data.append(MeshIndexData(mesh_matrix_index, tuple(bone_matrices)))
        return len(self._mesh_data) - 1

    def add_bone_set(self, bone_set: BoneSet) -> tuple[int, int]:
        """Take ownership of a bone set and give it a range of bone matrices.

        The set is resolved and its rest matrices derived.  Returns the
        half-open range of this Instantiable's bone matrices it occupies.
        """
        bone_set.resolve()
        bone_set.derive_matrices()
        start = self.num_bone_matrices
        self.bone_sets.append(BoneSetAndOffset(bone_set, start))
        self.num_bone_matrices += bone_set.max_index
        logger.debug("Bone set %d assigned bone matrices [%d, %d)",
                     len(self.bone_sets) - 1, start, self.num_bone_matrices)
        return start, self.num_bone_matrices

    def mesh_data(self, index: int) -> MeshIndexData:
        return self._mesh_data[index]

    @property
    def num_meshes(self) -> int:
        return len(self._mesh_data)

    def instantiate(self) -> Instance:
        """Create an Instance with its own transformation and bone poses."""
        return Instance(self)
