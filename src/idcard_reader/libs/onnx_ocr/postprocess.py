"""Postprocessing modules for OCR outputs."""

import logging
import math
from pathlib import Path
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from ...types import Frame, Rect, TextRegion
from ..geometry.letterbox import LetterboxResizer
from .utils import sigmoid, softmax

logger = logging.getLogger(__name__)

DEFAULT_VOCAB = (
    "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~°£€¥¢฿"
    "àâéèêëîïôùûüçÀÂÉÈÊËÎÏÔÙÛÜÇ"
)


class DBPostProcess:
    """Post-processing for DB (Differentiable Binarization) text detection.

    Converts a probability map to axis-aligned text boxes, each grown by an
    unclip margin of ``ceil(area * unclip_ratio / perimeter)``.
    """

    def __init__(
        self,
        thresh=0.3,
        unclip_ratio=2.0,
        box_min_area=64,
        apply_sigmoid=True,
    ):
        """Initialize DB post-processor.

        Args:
            thresh: Binarization threshold for probability map
            unclip_ratio: Ratio for expanding text regions
            box_min_area: Contours with area at or below this are dropped
            apply_sigmoid: Map logits to probabilities before thresholding
        """
        self.thresh = thresh
        self.unclip_ratio = unclip_ratio
        self.box_min_area = box_min_area
        self.apply_sigmoid = apply_sigmoid

    def __call__(self, pred: np.ndarray, resizer: LetterboxResizer) -> List[TextRegion]:
        """Convert a prediction map to text regions.

        Args:
            pred: Map of shape [1, 1, H, W], [1, H, W] or [H, W]
            resizer: Letterbox transform used to build the model input

        Returns:
            Text regions in the frame of the image given to the resizer
        """
        bitmap = self.binarize(pred)

        contours, _ = cv2.findContours(bitmap, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        regions = []
        for contour in contours:
            box = self.unclip_box(contour)
            if box is None:
                continue
            regions.append(TextRegion(bbox=resizer.revert_rect(box)))

        logger.debug(f"DB postprocess: {len(contours)} contours -> {len(regions)} regions")
        return regions

    def binarize(self, pred: np.ndarray) -> np.ndarray:
        """Threshold the map into a uint8 {0, 255} bitmap."""
        pred = np.asarray(pred)
        while pred.ndim > 2 and pred.shape[0] == 1:
            pred = pred[0]
        if pred.ndim != 2:
            raise ValueError(f"Expected a single 2D probability map, got shape {pred.shape}")

        prob = sigmoid(pred) if self.apply_sigmoid else pred
        return np.where(prob >= self.thresh, 255, 0).astype(np.uint8)

    def unclip_box(self, contour: np.ndarray) -> Optional[Rect]:
        """Bounding box of ``contour`` expanded by the unclip distance.

        Returns:
            Input-frame box, or None if the contour is too small.
        """
        area = cv2.contourArea(contour)
        length = cv2.arcLength(contour, True)
        if area <= self.box_min_area or length <= 0:
            return None

        d = math.ceil(area * self.unclip_ratio / length)
        x, y, w, h = cv2.boundingRect(contour)
        return Rect(x - d, y - d, w + 2 * d, h + 2 * d, frame=Frame.INPUT)


class CTCLabelDecode:
    """Greedy CTC decoding for text recognition.

    The blank symbol sits at the last class index, after the vocabulary.
    """

    def __init__(
        self,
        vocab: Optional[str] = None,
        character_dict_path: Optional[Union[str, Path]] = None,
    ):
        """Initialize CTC decoder.

        Args:
            vocab: Vocabulary string, one class per character
            character_dict_path: Dictionary file, one character per line;
                takes precedence over ``vocab``
        """
        if character_dict_path is not None:
            self.character = self.load_dict(character_dict_path)
        else:
            self.character = list(vocab if vocab is not None else DEFAULT_VOCAB)

        if not self.character:
            raise ValueError("Vocabulary must not be empty")

        self.blank = len(self.character)

    @staticmethod
    def load_dict(path: Union[str, Path]) -> List[str]:
        chars = []
        with open(path, "rb") as fin:
            for line in fin.readlines():
                line = line.decode("utf-8").strip("\r\n")
                if line:
                    chars.append(line)
        return chars

    @property
    def num_classes(self) -> int:
        return len(self.character) + 1

    def __call__(self, preds: np.ndarray) -> List[str]:
        """Decode CTC predictions to text.

        Args:
            preds: Logits array [batch, time, num_classes]

        Returns:
            One string per batch item, in batch order
        """
        return [text for text, _ in self.decode_with_confidence(preds)]

    def decode_with_confidence(self, preds: np.ndarray) -> List[Tuple[str, float]]:
        """Decode and report the weakest best-path probability per sequence."""
        if isinstance(preds, (tuple, list)):
            preds = preds[-1]
        preds = np.asarray(preds, dtype=np.float32)

        if preds.ndim != 3:
            raise ValueError(f"Expected logits of shape [N, T, C], got {preds.shape}")
        if preds.shape[2] != self.num_classes:
            raise ValueError(
                f"Model emits {preds.shape[2]} classes but vocabulary has "
                f"{len(self.character)} characters (+1 blank)"
            )

        probs = softmax(preds, axis=2)
        preds_idx = probs.argmax(axis=2)
        preds_prob = probs.max(axis=2)

        results = []
        for idx, prob in zip(preds_idx, preds_prob):
            text = self.decode(idx)
            confidence = float(prob.min()) if prob.size else 0.0
            results.append((text, confidence))
        return results

    def decode(self, text_index: np.ndarray) -> str:
        """Collapse one best path into a string.

        Repeats are merged first, blanks removed second, so a blank between
        two equal symbols keeps both.
        """
        text_index = np.asarray(text_index)
        if text_index.size == 0:
            return ""

        selection = np.ones(len(text_index), dtype=bool)
        selection[1:] = text_index[1:] != text_index[:-1]
        selection &= text_index != self.blank

        return "".join(self.character[i] for i in text_index[selection])
