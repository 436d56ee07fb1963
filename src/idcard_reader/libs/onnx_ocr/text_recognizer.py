"""
Text Recognition Module - Stage 2 of OCR Pipeline

Recognizes text from cropped text image patches with a CRNN model.
Crops are processed in fixed-size batches.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

from .config import RecognizerConfig
from .onnx_base import ONNXInferenceBase, resolve_session, spatial_size
from .postprocess import CTCLabelDecode
from .preprocess import letterbox_ops, transform

logger = logging.getLogger(__name__)


class TextRecognizer:
    """Text recognition module with batch processing.

    This is a standalone module that can be used independently.
    Takes a list of text image patches and returns recognized strings.
    """

    def __init__(
        self,
        model: Union[str, Path, ONNXInferenceBase],
        config: RecognizerConfig = None,
    ):
        """Initialize text recognizer.

        Args:
            model: Path to the CRNN ONNX model, or an already loaded session
            config: Recognizer configuration (uses defaults if None)
        """
        if config is None:
            config = RecognizerConfig()

        self.config = config
        self.rec_batch_num = config.rec_batch_num

        self.session = resolve_session(
            model,
            use_gpu=config.use_gpu,
            use_tensorrt=config.use_tensorrt,
        )

        _, img_h, img_w = config.rec_image_shape
        self.input_size = spatial_size(self.session.input_shape, (img_w, img_h))

        # Text is anchored top-left and padded with white like a blank label
        self.preprocess_ops = letterbox_ops(
            self.input_size,
            align="TOP_LEFT",
            pad_color=(255, 255, 255),
        )

        self.postprocess_op = CTCLabelDecode(
            vocab=config.vocab,
            character_dict_path=config.char_dict_path,
        )

    def resize_norm_img(self, img: np.ndarray) -> np.ndarray:
        """Letterbox and normalize one crop to (C, H, W)."""
        norm_img, _ = transform({"image": img}, self.preprocess_ops)
        return norm_img

    def __call__(self, img_list: List[np.ndarray]) -> List[Tuple[str, float]]:
        """Recognize text in a list of crops.

        Args:
            img_list: List of text image patches (BGR format)

        Returns:
            List of (text, confidence) tuples in input order
        """
        if not img_list:
            return []

        img_num = len(img_list)
        rec_res: List[Tuple[str, float]] = []

        for beg_img_no in range(0, img_num, self.rec_batch_num):
            end_img_no = min(img_num, beg_img_no + self.rec_batch_num)

            norm_img_batch = np.stack([
                self.resize_norm_img(img_list[ino])
                for ino in range(beg_img_no, end_img_no)
            ])

            input_feed = self.session.get_input_feed(norm_img_batch)
            outputs = self.session.run(input_feed)

            batch_res = self.postprocess_op.decode_with_confidence(outputs[0])
            if len(batch_res) != end_img_no - beg_img_no:
                raise ValueError(
                    f"Recognizer returned {len(batch_res)} sequences for "
                    f"a batch of {end_img_no - beg_img_no}"
                )
            rec_res.extend(batch_res)

        logger.debug(f"Recognized {img_num} crop(s) in "
                     f"{(img_num + self.rec_batch_num - 1) // self.rec_batch_num} batch(es)")
        return rec_res

    def recognize_single(self, img: np.ndarray) -> Tuple[str, float]:
        """Recognize text in a single image.

        Args:
            img: Text image patch (BGR format)

        Returns:
            Tuple of (text, confidence)
        """
        results = self([img])
        return results[0] if results else ("", 0.0)

    def __repr__(self):
        return (f"TextRecognizer(input_size={self.input_size}, "
                f"vocab_size={len(self.postprocess_op.character)})")
