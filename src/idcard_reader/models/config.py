"""
Model definitions: groups and filenames.

Single source of truth for every model weight used in the project. Files
are looked up in a local models directory first and otherwise fetched from
a HuggingFace repository.
"""

import os
from dataclasses import dataclass
from typing import Dict

# ---------------------------------------------------------------------------
# Where models come from (overridable per ModelRegistry instance)
# ---------------------------------------------------------------------------
MODELS_DIR_ENV = "IDCARD_READER_MODELS_DIR"
HF_REPO_ENV = "IDCARD_READER_HF_REPO"


def default_models_dir():
    return os.environ.get(MODELS_DIR_ENV)


def default_repo_id():
    return os.environ.get(HF_REPO_ENV)


@dataclass(frozen=True)
class ModelFile:
    """A single model file, relative to the models dir / repo root."""
    filename: str          # e.g. "segmenter/yolo11n-seg.onnx"
    description: str = ""


@dataclass(frozen=True)
class ModelGroup:
    """A logical group of model files that belong together."""
    name: str
    description: str
    files: Dict[str, ModelFile]  # key -> ModelFile


# ---------------------------------------------------------------------------
# YOLO-seg: card localization
# ---------------------------------------------------------------------------
CARD_SEGMENTER = ModelGroup(
    name="card_segmenter",
    description="YOLO11 instance segmentation for ID cards",
    files={
        "model": ModelFile(
            filename="segmenter/yolo11n-seg.onnx",
            description="End-to-end YOLO11n-seg (boxes + prototype masks)",
        ),
    },
)

# ---------------------------------------------------------------------------
# DBNet: text region detection
# ---------------------------------------------------------------------------
TEXT_DETECTOR = ModelGroup(
    name="text_detector",
    description="DBNet text detection on rectified cards",
    files={
        "model": ModelFile(
            filename="detector/dbnet.onnx",
            description="DB text detector (probability map output)",
        ),
    },
)

# ---------------------------------------------------------------------------
# CRNN: text line recognition
# ---------------------------------------------------------------------------
TEXT_RECOGNIZER = ModelGroup(
    name="text_recognizer",
    description="CRNN text line recognition with CTC head",
    files={
        "model": ModelFile(
            filename="recognizer/crnn.onnx",
            description="CRNN recognizer, blank class last",
        ),
    },
)

# ---------------------------------------------------------------------------
# Master registry
# ---------------------------------------------------------------------------
ALL_GROUPS: Dict[str, ModelGroup] = {
    "card_segmenter": CARD_SEGMENTER,
    "text_detector": TEXT_DETECTOR,
    "text_recognizer": TEXT_RECOGNIZER,
}
