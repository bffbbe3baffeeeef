"""Drawable composition -- instantiable models and their posed instances."""

from boneforge.drawable.instance import Instance
from boneforge.drawable.instantiable import Instantiable, MeshIndexData

__all__ = ["Instance", "Instantiable", "MeshIndexData"]
