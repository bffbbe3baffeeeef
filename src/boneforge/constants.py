"""Shared constants and paths for BoneForge."""

from pathlib import Path

import numpy as np

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"
SKELETON_CONFIG_DIR = CONFIG_DIR / "skeleton"

# Numeric tolerances
EPSILON = 1e-10
SLERP_LINEAR_THRESHOLD = 0.9995  # |dot| above which slerp falls back to nlerp

# Matrices handed to the renderer (uniform/storage buffer upload)
GL_MATRIX_DTYPE = np.float32

# Frame timing
MAX_DELTA_TIME = 0.1  # Upper bound on one frame delta (seconds)

# Bone matrix index assignment ("authored" or "traversal")
DEFAULT_INDEX_POLICY = "authored"
