"""
YOLO instance segmentation for ID card localization.
Contains the model wrapper and the box/mask decoding.
"""

from .config import DEFAULT_LABELS, SegmenterConfig
from .model import CardSegmenter
from .postprocess import SegPostProcess, decode_mask, mask_to_uint8

__all__ = [
    "CardSegmenter",
    "DEFAULT_LABELS",
    "SegmenterConfig",
    "SegPostProcess",
    "decode_mask",
    "mask_to_uint8",
]
