"""YOLO instance segmentation model for locating ID cards."""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from ...types import Detection
from ..onnx_ocr.onnx_base import ONNXInferenceBase, resolve_session, spatial_size
from ..onnx_ocr.preprocess import letterbox_ops, transform
from .config import SegmenterConfig
from .postprocess import SegPostProcess

logger = logging.getLogger(__name__)


class CardSegmenter:
    """Runs the segmentation model and decodes its two outputs.

    The model is expected to emit end-to-end box rows ``[1, N, 6 + K]``
    followed by prototype masks ``[1, K, mask_h, mask_w]``.
    """

    def __init__(
        self,
        model: Union[str, Path, ONNXInferenceBase],
        config: Optional[SegmenterConfig] = None,
    ):
        """
        Args:
            model: Path to the YOLO-seg ONNX model, or a loaded session
            config: Segmenter configuration (uses defaults if None)
        """
        if config is None:
            config = SegmenterConfig()

        self.config = config
        self.session = resolve_session(
            model,
            use_gpu=config.use_gpu,
            use_tensorrt=config.use_tensorrt,
        )

        self.input_size = spatial_size(self.session.input_shape, config.input_size)
        self.preprocess_ops = letterbox_ops(self.input_size, align="MID_CENTER")
        self.postprocess_op = SegPostProcess(config.labels, confidence=config.confidence)

    @property
    def labels(self) -> List[str]:
        return self.config.labels

    def predict(self, image: np.ndarray, confidence: Optional[float] = None) -> List[Detection]:
        """Detect cards in ``image``.

        Args:
            image: BGR image (H, W, 3) or BGRA
            confidence: Per-call override of the score threshold

        Returns:
            Detections in the frame of ``image``
        """
        img, resizer = transform({"image": image}, self.preprocess_ops)
        img = np.expand_dims(img, axis=0)

        outputs = self.session.run(self.session.get_input_feed(img))
        if len(outputs) < 2:
            raise ValueError(
                f"Segmentation model returned {len(outputs)} output(s), expected boxes and masks"
            )

        postprocess = self.postprocess_op
        if confidence is not None:
            postprocess = SegPostProcess(self.config.labels, confidence=confidence)

        detections = postprocess(outputs[0], outputs[1], resizer)
        logger.info(f"Segmenter found {len(detections)} detection(s)")
        return detections

    def __repr__(self):
        return f"CardSegmenter(input_size={self.input_size}, labels={self.config.labels})"
