"""Decoding of YOLO segmentation outputs into detections with masks."""

import logging
import math
from typing import List, Sequence

import cv2
import numpy as np

from ...types import Detection, Frame, Rect
from ..geometry.letterbox import LetterboxResizer
from ..onnx_ocr.utils import sigmoid

logger = logging.getLogger(__name__)

# Box row layout: x1, y1, x2, y2, score, class_id, mask coefficients...
NUM_BOX_FIELDS = 6


def decode_mask(coefficients: np.ndarray, protos: np.ndarray) -> np.ndarray:
    """Combine prototype masks with one instance's coefficients.

    Args:
        coefficients: Array of shape (K,)
        protos: Prototype masks of shape (K, mask_h, mask_w)

    Returns:
        float32 probabilities of shape (mask_h, mask_w):
        ``sigmoid(sum_k coefficients[k] * protos[k])``
    """
    coefficients = np.asarray(coefficients, dtype=np.float32)
    protos = np.asarray(protos, dtype=np.float32)
    num, mask_h, mask_w = protos.shape
    if coefficients.shape != (num,):
        raise ValueError(
            f"Expected {num} mask coefficients, got shape {coefficients.shape}"
        )
    logits = coefficients @ protos.reshape(num, -1)
    return sigmoid(logits).reshape(mask_h, mask_w)


def mask_to_uint8(prob: np.ndarray) -> np.ndarray:
    """Map probabilities in [0, 1] to 0-255 with round-half-to-even."""
    return np.clip(np.round(prob * 255.0), 0, 255).astype(np.uint8)


class SegPostProcess:
    """Turns YOLO-seg box rows and prototype masks into Detections.

    Rows below ``confidence`` or with an unknown class are dropped; the rest
    are emitted in row order, without sorting or NMS.
    """

    def __init__(self, labels: Sequence[str], confidence: float = 0.8):
        """Initialize segmentation post-processor.

        Args:
            labels: Class names indexed by class id
            confidence: Minimum score to keep a row
        """
        self.labels = list(labels)
        self.confidence = confidence

    def __call__(
        self,
        boxes: np.ndarray,
        protos: np.ndarray,
        resizer: LetterboxResizer,
    ) -> List[Detection]:
        """Decode one image worth of model output.

        Args:
            boxes: [1, N, stride] or [N, stride] box rows
            protos: [1, K, mask_h, mask_w] or [K, mask_h, mask_w]
            resizer: Letterbox transform used to build the model input

        Returns:
            Detections in the original image frame
        """
        boxes = np.asarray(boxes, dtype=np.float32)
        protos = np.asarray(protos, dtype=np.float32)
        if boxes.ndim == 3:
            boxes = boxes[0]
        if protos.ndim == 4:
            protos = protos[0]

        if boxes.ndim != 2 or protos.ndim != 3:
            raise ValueError(
                f"Unexpected output shapes: boxes {boxes.shape}, protos {protos.shape}"
            )

        num_masks = protos.shape[0]
        if boxes.shape[1] < NUM_BOX_FIELDS + num_masks:
            raise ValueError(
                f"Box rows have {boxes.shape[1]} columns, expected at least "
                f"{NUM_BOX_FIELDS + num_masks} for {num_masks} mask coefficients"
            )

        detections = []
        for row in boxes:
            detection = self.decode_row(row, protos, resizer)
            if detection is not None:
                detections.append(detection)

        logger.debug(f"Seg postprocess: {len(boxes)} rows -> {len(detections)} detections")
        return detections

    def decode_row(self, row: np.ndarray, protos: np.ndarray, resizer: LetterboxResizer):
        score = float(row[4])
        class_id = int(row[5])

        if score < self.confidence or class_id < 0 or class_id >= len(self.labels):
            return None

        input_w, input_h = resizer.dst_size.as_tuple()
        x1 = min(max(math.floor(row[0]), 0), input_w)
        y1 = min(max(math.floor(row[1]), 0), input_h)
        x2 = min(max(math.ceil(row[2]), 0), input_w)
        y2 = min(max(math.ceil(row[3]), 0), input_h)

        box = Rect.from_xyxy(x1, y1, x2, y2, frame=Frame.INPUT)
        if box.is_empty():
            logger.debug(f"Skipping collapsed box {box.to_xyxy()} (score={score:.3f})")
            return None

        num_masks = protos.shape[0]
        coefficients = row[NUM_BOX_FIELDS:NUM_BOX_FIELDS + num_masks]
        mask = mask_to_uint8(decode_mask(coefficients, protos))

        # Prototype grid -> model input -> box -> original image
        mask = cv2.resize(mask, (input_w, input_h), interpolation=cv2.INTER_CUBIC)
        mask = mask[box.y:box.y2, box.x:box.x2]

        bbox = resizer.revert_rect(box)
        if bbox.is_empty():
            logger.debug(f"Skipping box {box.to_xyxy()} outside the image area")
            return None

        mask = cv2.resize(mask, (bbox.width, bbox.height), interpolation=cv2.INTER_CUBIC)

        return Detection(
            class_id=class_id,
            label=self.labels[class_id],
            confidence=score,
            bbox=bbox,
            mask=mask,
        )
