"""Poses for every bone of a BoneSet and the per-frame skinning matrices."""

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from boneforge.core.math_utils import mat4_array_to_gl
from boneforge.skeleton.bone_pose import BonePose
from boneforge.skeleton.bone_set import BoneSet

logger = logging.getLogger(__name__)


class BonePoseSet:
    """One BonePose per Bone plus the output matrix array.

    ``poses`` is indexed like the BoneSet's hierarchy; ``data`` is indexed by
    each bone's ``matrix_index`` and holds ``max_index`` mesh-to-model
    matrices ready for upload.
    """

    def __init__(self, bone_set: BoneSet):
        bone_set.resolve()
        self.bone_set = bone_set
        self.poses: list[BonePose] = [BonePose(bone) for bone in bone_set.bones]
        self.data = np.zeros((bone_set.max_index, 4, 4), dtype=np.float64)
        self.last_updated: Optional[int] = None
        self._temp_mat4s = np.zeros_like(bone_set.temp_mat4s)

    def __len__(self) -> int:
        return len(self.poses)

    def pose(self, index: int) -> BonePose:
        return self.poses[index]

    def reset(self) -> None:
        """Return every pose to its bone's rest transformation."""
        for pose in self.poses:
            pose.transformation_reset()

    def derive_animation(self) -> None:
        """Derive animated matrices for every pose by replaying the recipes."""
        if not self.bone_set.is_resolved:
            raise RuntimeError("BoneSet must be resolved before deriving animation")
        temp = self._temp_mat4s
        for _, recipe in self.bone_set.roots:
            depth = 0
            for op in recipe:
                if op.is_push:
                    pose = self.poses[op.index]
                    if depth == 0:
                        temp[0] = pose.derive_animation(True, temp[0])
                    else:
                        temp[depth] = pose.derive_animation(False, temp[depth - 1])
                    depth += 1
                else:
                    depth -= 1

    def update(self, tick: int) -> bool:
        """Recompute the output matrices unless already done for ``tick``.

        ``tick`` is any value that changes once per frame, such as
        ``FrameClock.advance()[0]``.

        Returns True if the matrices were recomputed.
        """
        if tick == self.last_updated:
            return False
        self.last_updated = tick
        self.derive_animation()
        for pose in self.poses:
            self.data[pose.bone.matrix_index] = pose.animated_mtm
        logger.debug("Bone poses recomputed for tick %s (%d bones)", tick, len(self.poses))
        return True

    def gl_data(self) -> NDArray[np.float32]:
        """Output matrices packed column-major as float32 for upload."""
        return mat4_array_to_gl(self.data)
