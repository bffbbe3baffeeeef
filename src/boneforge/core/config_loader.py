"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any

from boneforge.constants import SKELETON_CONFIG_DIR


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path) as f:
        return json.load(f)


def load_skeleton_config(name: str) -> Any:
    """Load a skeleton description from assets/config/skeleton/."""
    return load_json(SKELETON_CONFIG_DIR / name)
