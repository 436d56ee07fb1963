"""
Unified model management for idcard_reader.

Usage:
    from idcard_reader.models import ModelRegistry

    registry = ModelRegistry(models_dir="./models")
    path = registry.get("text_detector")     # local file or HF download
    print(registry.status())                 # show what's available
"""

from .registry import ModelRegistry
from .config import (
    ALL_GROUPS,
    CARD_SEGMENTER,
    HF_REPO_ENV,
    MODELS_DIR_ENV,
    TEXT_DETECTOR,
    TEXT_RECOGNIZER,
)

__all__ = [
    "ModelRegistry",
    "ALL_GROUPS",
    "CARD_SEGMENTER",
    "TEXT_DETECTOR",
    "TEXT_RECOGNIZER",
    "HF_REPO_ENV",
    "MODELS_DIR_ENV",
]
