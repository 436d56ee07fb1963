"""
Text Detection Module - Stage 1 of OCR Pipeline

Detects text regions on a rectified card using a DBNet model.
"""

import logging
from pathlib import Path
from typing import List, Union

import numpy as np

from ...types import TextRegion
from .config import DetectorConfig
from .onnx_base import ONNXInferenceBase, resolve_session, spatial_size
from .postprocess import DBPostProcess
from .preprocess import letterbox_ops, transform

logger = logging.getLogger(__name__)


class TextDetector:
    """Text detection module.

    This is a standalone module that can be used independently.
    Takes an image and returns axis-aligned text boxes in its frame.
    """

    def __init__(
        self,
        model: Union[str, Path, ONNXInferenceBase],
        config: DetectorConfig = None,
    ):
        """Initialize text detector.

        Args:
            model: Path to the DBNet ONNX model, or an already loaded session
            config: Detector configuration (uses defaults if None)
        """
        if config is None:
            config = DetectorConfig()

        self.config = config
        self.session = resolve_session(
            model,
            use_gpu=config.use_gpu,
            use_tensorrt=config.use_tensorrt,
        )

        self.input_size = spatial_size(self.session.input_shape, config.input_size)
        self.preprocess_ops = letterbox_ops(self.input_size, align="MID_CENTER")

        self.postprocess_op = DBPostProcess(
            thresh=config.det_db_thresh,
            unclip_ratio=config.det_db_unclip_ratio,
            box_min_area=config.det_db_box_min_area,
            apply_sigmoid=config.apply_sigmoid,
        )

    def preprocess(self, image: np.ndarray) -> tuple:
        """Letterbox and normalize one image.

        Returns:
            Tuple of (CHW float32 tensor, resizer)
        """
        return transform({"image": image}, self.preprocess_ops)

    def __call__(self, images: Union[np.ndarray, List[np.ndarray]]) -> List[List[TextRegion]]:
        """Detect text regions in a list of images.

        Args:
            images: Single image or list of images (BGR)

        Returns:
            List of region lists, one per image
        """
        if isinstance(images, np.ndarray):
            images = [images]
        return [self.detect_single(img) for img in images]

    def detect_single(self, image: np.ndarray) -> List[TextRegion]:
        """Detect text in a single image.

        Args:
            image: Input image as numpy array (H, W, C) in BGR

        Returns:
            Text regions in the frame of ``image``
        """
        img, resizer = self.preprocess(image)
        img = np.expand_dims(img, axis=0)

        input_feed = self.session.get_input_feed(img)
        outputs = self.session.run(input_feed)

        regions = self.postprocess_op(outputs[0], resizer)
        logger.info(f"Detected {len(regions)} text region(s)")
        return regions

    def __repr__(self):
        return f"TextDetector(input_size={self.input_size}, thresh={self.config.det_db_thresh})"
