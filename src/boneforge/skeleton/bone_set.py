"""A set of related bones (one or more skeletons) and rest-pose derivation."""

import logging
from enum import Enum
from typing import Iterator

import numpy as np

from boneforge.core.hierarchy import Hierarchy, Recipe
from boneforge.core.transformation import Transformation
from boneforge.skeleton.bone import Bone

logger = logging.getLogger(__name__)


class IndexPolicy(Enum):
    """How bones get their slot in the output matrix array."""
    # Keep authored indices; rewrite_indices() only acts when they look unassigned
    AUTHORED = "authored"
    # Always number bones 0..n-1 in traversal order when resolving
    TRAVERSAL = "traversal"


class BoneSet:
    """A hierarchy of Bones with cached traversal recipes per root.

    ``roots``, ``temp_mat4s`` and ``max_index`` are caches filled in by
    ``resolve()``.  Adding or relating bones clears them, so the set must
    not be edited once a BonePoseSet has been built on it.
    """

    def __init__(self, index_policy: IndexPolicy = IndexPolicy.AUTHORED):
        self.bones: Hierarchy[Bone] = Hierarchy()
        self.roots: list[tuple[int, Recipe]] = []
        self.temp_mat4s = np.zeros((0, 4, 4), dtype=np.float64)
        self.max_index = 0
        self.index_policy = index_policy
        self._resolved = False

    def __len__(self) -> int:
        return len(self.bones)

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    def add_bone(self, transformation: Transformation, matrix_index: int = 0) -> int:
        """Add a bone with a rest transformation relative to its (future) parent.

        Returns the bone's index in the hierarchy, which is independent of
        ``matrix_index``.
        """
        self._invalidate()
        return self.bones.add_node(Bone(transformation, matrix_index))

    def relate(self, parent: int, child: int) -> None:
        self._invalidate()
        self.bones.relate(parent, child)

    def _invalidate(self) -> None:
        self._resolved = False
        self.roots.clear()

    def bone(self, index: int) -> Bone:
        return self.bones.node(index)

    def iter_roots(self) -> Iterator[int]:
        for root, _ in self.roots:
            yield root

    def _find_max_matrix_index(self) -> None:
        self.max_index = max((b.matrix_index + 1 for b in self.bones), default=0)

    def resolve(self) -> None:
        """Find roots, build a Recipe per root and size the scratch matrices.

        A no-op once resolved, so callers may invoke it defensively.
        """
        if self._resolved:
            return
        self._resolved = True
        for root in self.bones.find_roots():
            self.roots.append((root, Recipe.of_ops(self.bones.enum_from(root))))
        max_depth = max((recipe.max_depth for _, recipe in self.roots), default=0)
        self.temp_mat4s = np.zeros((max_depth, 4, 4), dtype=np.float64)
        self._find_max_matrix_index()
        if self.index_policy is IndexPolicy.TRAVERSAL:
            self.rewrite_indices(force=True)
        logger.info(
            "Resolved bone set: %d bones, %d roots, max depth %d, %d matrices",
            len(self.bones), len(self.roots), max_depth, self.max_index,
        )

    def rewrite_indices(self, force: bool = False) -> None:
        """Renumber matrix indices 0, 1, 2, ... in traversal order.

        Without ``force`` this only happens when the authored indices cannot
        cover every bone (``max_index < len(bones)``).
        """
        self.resolve()
        if not force and self.max_index >= len(self.bones):
            return
        count = 0
        for _, recipe in self.roots:
            for index in recipe.pushed():
                self.bones.node(index).matrix_index = count
                count += 1
        self.max_index = count
        logger.debug("Rewrote bone matrix indices: %d bones", count)

    def derive_matrices(self) -> None:
        """Derive ptb and mtb for every bone by replaying the root recipes."""
        if not self._resolved:
            raise RuntimeError("BoneSet.resolve() must be called before derive_matrices()")
        temp = self.temp_mat4s
        for _, recipe in self.roots:
            depth = 0
            for op in recipe:
                if op.is_push:
                    bone = self.bones.node(op.index)
                    if depth == 0:
                        temp[0] = bone.derive_matrices(True, temp[0])
                    else:
                        temp[depth] = bone.derive_matrices(False, temp[depth - 1])
                    depth += 1
                else:
                    depth -= 1

    def describe(self) -> str:
        return self.bones.describe()

    def __str__(self) -> str:
        return self.describe()
