"""
Card Location Module
Finds the ID card in a photo and flattens it to a canonical 640x404 image
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from idcard_reader.libs.geometry import RectifyConfig, rectify
from idcard_reader.libs.yolo_seg import CardSegmenter
from idcard_reader.types import Detection

logger = logging.getLogger(__name__)


@dataclass
class LocatorConfig:
    """Policy for picking the card among the segmenter detections."""
    target_label: str = "ktp"  # Only detections with this label qualify
    min_side: int = 100  # Minimum length of the longer box side in pixels
    max_aspect_ratio: float = 2.0  # Longer side / shorter side upper bound


class CardLocator:
    """
    Card localization and rectification

    Runs the segmenter, keeps the best detection that looks like a card
    and warps it flat using its mask.
    """

    def __init__(
        self,
        segmenter: CardSegmenter,
        config: Optional[LocatorConfig] = None,
        rectify_config: Optional[RectifyConfig] = None,
    ):
        """
        Initialize card locator

        Args:
            segmenter: Loaded card segmentation model
            config: Candidate selection policy
            rectify_config: Rectification settings
        """
        self.segmenter = segmenter
        self.config = config or LocatorConfig()
        self.rectify_config = rectify_config or RectifyConfig()

        if self.config.target_label not in segmenter.labels:
            raise ValueError(
                f"Target label '{self.config.target_label}' not in model labels {segmenter.labels}"
            )

    def is_candidate(self, detection: Detection) -> bool:
        """Whether a detection passes the label and shape checks."""
        if detection.label != self.config.target_label:
            return False

        long_side = max(detection.bbox.width, detection.bbox.height)
        short_side = min(detection.bbox.width, detection.bbox.height)
        if short_side <= 0 or long_side < self.config.min_side:
            return False

        return long_side / short_side <= self.config.max_aspect_ratio

    def select_candidate(self, detections: List[Detection]) -> Optional[Detection]:
        """
        Pick the single card to rectify

        Args:
            detections: Segmenter output

        Returns:
            Highest-confidence qualifying detection, or None
        """
        candidates = [d for d in detections if self.is_candidate(d)]
        logger.debug(f"{len(candidates)} of {len(detections)} detection(s) qualify as a card")
        if not candidates:
            return None
        return max(candidates, key=lambda d: d.confidence)

    def detect(self, image: np.ndarray) -> List[Detection]:
        return self.segmenter.predict(image)

    def rectify(self, image: np.ndarray, detection: Detection) -> Optional[np.ndarray]:
        """
        Flatten the card covered by ``detection``

        Returns:
            Landscape card image, or None when no outline was found
        """
        return rectify(image, detection.bbox, detection.mask, self.rectify_config)

    def __repr__(self):
        return f"CardLocator(segmenter={self.segmenter}, target={self.config.target_label})"
