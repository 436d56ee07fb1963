"""
Data types shared by every stage of the ID card pipeline.

All geometry containers are frozen dataclasses: a stage that needs a
different box builds a new one instead of mutating the one it received.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np


class InvalidDimensionError(ValueError):
    """Raised when a size has a zero or negative dimension."""


class Frame(Enum):
    """Coordinate frame a box is expressed in."""

    INPUT = "input"  # model input (letterboxed) frame
    ORIGINAL = "original"  # frame of the image handed to the stage


@dataclass(frozen=True)
class Size:
    """Image size in pixels."""

    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionError(
                f"Size must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def of(cls, value: Union["Size", Sequence[int]]) -> "Size":
        """Build a Size from a Size or a (width, height) pair."""
        if isinstance(value, Size):
            return value
        width, height = value
        return cls(int(width), int(height))

    @classmethod
    def from_image(cls, image: np.ndarray) -> "Size":
        """Size of an (H, W[, C]) image array."""
        return cls(int(image.shape[1]), int(image.shape[0]))

    def as_tuple(self) -> Tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Integer box tagged with the frame its coordinates belong to."""

    x: int
    y: int
    width: int
    height: int
    frame: Frame = Frame.ORIGINAL

    @classmethod
    def from_xyxy(cls, x1, y1, x2, y2, frame: Frame = Frame.ORIGINAL) -> "Rect":
        return cls(int(x1), int(y1), int(x2 - x1), int(y2 - y1), frame)

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_xyxy(self) -> List[int]:
        return [self.x, self.y, self.x2, self.y2]

    def crop(self, image: np.ndarray) -> np.ndarray:
        """Return a copy of the region of ``image`` covered by this box."""
        return image[self.y:self.y2, self.x:self.x2].copy()


class CornerQuad(NamedTuple):
    """Document corners in (tl, tr, bl, br) order."""

    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point

    def to_array(self) -> np.ndarray:
        return np.array([[p.x, p.y] for p in self], dtype=np.float32)

    def offset(self, dx: float, dy: float) -> "CornerQuad":
        return CornerQuad(*(Point(p.x + dx, p.y + dy) for p in self))


@dataclass(frozen=True)
class TransformContext:
    """Parameters of one letterbox resize, shared by both mapping directions."""

    ratio: float
    pad_left: int
    pad_top: int
    pad_right: int
    pad_bottom: int
    src_size: Size
    dst_size: Size
    scaled_size: Size


@dataclass(frozen=True)
class Detection:
    """One instance from the card segmentation model.

    Attributes:
        class_id: Index into the model label list.
        label: Human-readable class name.
        confidence: Model score in [0, 1].
        bbox: Box in the original image frame.
        mask: uint8 mask of shape (bbox.height, bbox.width).
    """

    class_id: int
    label: str
    confidence: float
    bbox: Rect
    mask: np.ndarray = field(repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "class_id": self.class_id,
            "label": self.label,
            "confidence": round(float(self.confidence), 4),
            "bbox": self.bbox.to_xyxy(),
        }


@dataclass(frozen=True)
class TextRegion:
    bbox: Rect


@dataclass(frozen=True)
class RecognizedText:
    bbox: Rect
    text: str
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "bbox": self.bbox.to_xyxy(),
            "text": self.text,
            "confidence": round(float(self.confidence), 4),
        }


class PipelineStatus(Enum):
    """Outcome of one pipeline run."""

    SUCCESS = "SUCCESS"
    NO_CANDIDATE = "NO_CANDIDATE"  # no detection satisfied the selection policy
    RECTIFY_FAILED = "RECTIFY_FAILED"  # no usable contour inside the candidate


@dataclass
class PipelineResult:
    """Output of ``IDCardPipeline.process_image``.

    Attributes:
        status: Run outcome.
        detection: Selected card detection (None when no candidate).
        rectified: Flattened 640x404 card image (None unless rectified).
        texts: Recognized text lines on the rectified card.
        detections: Every detection the segmenter emitted.
    """

    status: PipelineStatus
    detection: Optional[Detection] = None
    rectified: Optional[np.ndarray] = field(default=None, repr=False)
    texts: List[RecognizedText] = field(default_factory=list)
    detections: List[Detection] = field(default_factory=list, repr=False)

    def is_success(self) -> bool:
        return self.status == PipelineStatus.SUCCESS

    @property
    def message(self) -> str:
        messages = {
            PipelineStatus.SUCCESS: f"Recognized {len(self.texts)} text region(s)",
            PipelineStatus.NO_CANDIDATE: "No ID card candidate found",
            PipelineStatus.RECTIFY_FAILED: "Could not find the card outline",
        }
        return messages[self.status]

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "detection": None if self.detection is None else self.detection.to_dict(),
            "texts": [t.to_dict() for t in self.texts],
        }
