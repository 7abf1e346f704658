"""
Rendering helpers shared by the board environments.
"""

from circuitslide.utils.annotate import IMG_SIZE
from circuitslide.utils.util import add_img_parser, coloring_str

__all__ = [
    "IMG_SIZE",
    "add_img_parser",
    "coloring_str",
]
