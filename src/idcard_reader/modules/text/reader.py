"""
Text Reading Module
Detects text lines on a rectified card and recognizes them in batches
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from idcard_reader.libs.onnx_ocr import TextDetector, TextRecognizer
from idcard_reader.libs.onnx_ocr.utils import auto_contrast, crop_regions, sorted_regions
from idcard_reader.types import RecognizedText

logger = logging.getLogger(__name__)


@dataclass
class ReaderConfig:
    """Configuration for the text reading stage."""
    sort_regions: bool = True  # Return lines in reading order
    auto_contrast: bool = False  # Stretch contrast before detection
    clip_hist_percent: float = 5  # Histogram clipping for auto_contrast


class TextReader:
    """
    Text extraction from a rectified card

    Detection and recognition models are passed in, so one set of sessions
    can serve many readers and pipelines.
    """

    def __init__(
        self,
        detector: TextDetector,
        recognizer: TextRecognizer,
        config: Optional[ReaderConfig] = None,
    ):
        """
        Initialize text reader

        Args:
            detector: Loaded text detector
            recognizer: Loaded text recognizer
            config: Reader settings
        """
        self.detector = detector
        self.recognizer = recognizer
        self.config = config or ReaderConfig()

    def read(self, image: np.ndarray) -> List[RecognizedText]:
        """
        Read all text on ``image``

        Args:
            image: Rectified card (BGR)

        Returns:
            Recognized lines with boxes in the frame of ``image``
        """
        if self.config.auto_contrast:
            image = auto_contrast(image, self.config.clip_hist_percent)

        regions = self.detector.detect_single(image)
        if self.config.sort_regions:
            regions = sorted_regions(regions)

        crops = crop_regions(image, regions)
        if not crops:
            logger.debug("No text regions to recognize")
            return []

        rec_res = self.recognizer([crop for _, crop in crops])

        return [
            RecognizedText(bbox=region.bbox, text=text, confidence=confidence)
            for (region, _), (text, confidence) in zip(crops, rec_res)
        ]

    def __repr__(self):
        return f"TextReader(detector={self.detector}, recognizer={self.recognizer})"
