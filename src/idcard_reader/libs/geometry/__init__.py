"""
Geometric core of the card pipeline

- LetterboxResizer: aspect-preserving resize and coordinate mapping
- find_corners: quadrilateral corners from a card contour
- rectify: perspective flattening of a detected card
"""

from .letterbox import LetterboxResizer, ResizeAlign, compute_transform
from .corners import find_corners, fit_line, intersect_lines, polar_angle
from .rectify import RectifyConfig, find_document_hull, mask_iou, rectify

__all__ = [
    "LetterboxResizer",
    "ResizeAlign",
    "compute_transform",
    "find_corners",
    "fit_line",
    "intersect_lines",
    "polar_angle",
    "RectifyConfig",
    "find_document_hull",
    "mask_iou",
    "rectify",
]
