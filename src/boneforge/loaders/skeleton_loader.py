"""Build a BoneSet from a JSON skeleton description.

Format::

    {
      "index_policy": "authored" | "traversal",     (optional)
      "bones": [
        {"name": "upper_arm", "parent": "shoulder",
         "translation": [x, y, z], "rotation": [x, y, z, w], "scale": [x, y, z],
         "matrix_index": 3},
        ...
      ]
    }

Only ``name`` is required per bone.  Parents are referenced by name and may
be declared after their children.
"""

import logging
from dataclasses import dataclass
from typing import Any

from boneforge.constants import DEFAULT_INDEX_POLICY
from boneforge.core.config_loader import load_skeleton_config
from boneforge.core.transformation import make_transformation
from boneforge.skeleton.bone_set import BoneSet, IndexPolicy

logger = logging.getLogger(__name__)


@dataclass
class SkeletonLoadResult:
    """Result from building a skeleton."""
    bone_set: BoneSet
    names: dict[str, int]  # bone name → hierarchy index

    def bone_index(self, name: str) -> int:
        return self.names[name]


def _parse_policy(value: str) -> IndexPolicy:
    try:
        return IndexPolicy(value)
    except ValueError:
        raise ValueError(f"Unknown index policy: {value!r}") from None


def build_bone_set(defs: dict[str, Any]) -> SkeletonLoadResult:
    """Create, relate and resolve a BoneSet from a skeleton description."""
    policy = _parse_policy(defs.get("index_policy", DEFAULT_INDEX_POLICY))
    bone_defs = defs.get("bones", [])
    bone_set = BoneSet(index_policy=policy)
    names: dict[str, int] = {}

    missing_index = 0
    for bd in bone_defs:
        name = bd["name"]
        if name in names:
            raise ValueError(f"Duplicate bone name: {name!r}")
        if "matrix_index" not in bd:
            missing_index += 1
        t = make_transformation(
            translation=bd.get("translation"),
            rotation=bd.get("rotation"),
            scale=bd.get("scale"),
        )
        names[name] = bone_set.add_bone(t, int(bd.get("matrix_index", 0)))

    if missing_index and policy is IndexPolicy.AUTHORED:
        logger.warning("%d bones have no matrix_index under the authored policy",
                       missing_index)

    for bd in bone_defs:
        parent = bd.get("parent")
        if parent is None:
            continue
        if parent not in names:
            raise ValueError(f"Bone {bd['name']!r} has unknown parent {parent!r}")
        bone_set.relate(names[parent], names[bd["name"]])

    bone_set.resolve()
    logger.info("Built skeleton: %d bones, %d roots", len(bone_set), len(bone_set.roots))
    return SkeletonLoadResult(bone_set=bone_set, names=names)


def load_bone_set(name: str) -> SkeletonLoadResult:
    """Load a skeleton description from assets/config/skeleton/ and build it."""
    return build_bone_set(load_skeleton_config(name))
