"""Skeleton subsystem -- bones, rest-pose derivation and per-frame posing."""

from boneforge.skeleton.bone import Bone
from boneforge.skeleton.bone_pose import BonePose
from boneforge.skeleton.bone_pose_set import BonePoseSet
from boneforge.skeleton.bone_set import BoneSet, IndexPolicy

__all__ = [
    "Bone",
    "BonePose",
    "BonePoseSet",
    "BoneSet",
    "IndexPolicy",
]
