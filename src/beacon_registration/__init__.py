"""
Beacon Registration Package

Reconstructs a single global coordinate frame from several scanners that each
report exact integer beacon positions in their own local frame. Frames differ
by an unknown translation and one of the 24 axis-aligned rotations. Scanners
are registered pairwise through overlapping beacons until every scanner has a
global position, and the distinct beacons of all scanners are collected.
"""

__version__ = "0.1.0"

from .preprocessing import *
from .alignment import *
from .utils import *

__all__ = [
    "preprocessing",
    "alignment",
    "acceleration",
    "utils",
]
