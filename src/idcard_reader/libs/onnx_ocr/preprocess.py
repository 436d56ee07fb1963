"""Preprocessing operations shared by the ONNX stages."""

from typing import Dict, List, Sequence, Tuple

import cv2
import numpy as np

from ...types import Size
from ..geometry.letterbox import LetterboxResizer, ResizeAlign


class LetterboxResize:
    """Fit the image into the model input size, padding the remainder."""

    def __init__(
        self,
        size: Sequence[int],
        align: str = "MID_CENTER",
        pad_color: Sequence[int] = (0, 0, 0),
        **kwargs,
    ):
        self.size = Size.of(size)
        self.align = ResizeAlign[align]
        self.pad_color = tuple(pad_color)

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        resizer = LetterboxResizer(Size.from_image(img), self.size, self.align)
        data['image'] = resizer.scale_image(img, pad_color=self.pad_color)
        data['resizer'] = resizer
        return data


class NormalizeImage:
    """Scale pixel values and convert BGR to RGB."""

    def __init__(self, scale: float = 1.0 / 255.0, swap_rb: bool = True, **kwargs):
        self.scale = np.float32(scale)
        self.swap_rb = swap_rb

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        elif img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
        if self.swap_rb:
            img = img[:, :, ::-1]
        data['image'] = img.astype('float32') * self.scale
        return data


class ToCHWImage:
    """Convert image from HWC to CHW format."""

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        data['image'] = np.ascontiguousarray(img.transpose((2, 0, 1)))
        return data


class KeepKeys:
    """Keep only specified keys in data dict."""

    def __init__(self, keep_keys: List[str], **kwargs):
        self.keep_keys = keep_keys

    def __call__(self, data: Dict) -> Tuple:
        return tuple(data[key] for key in self.keep_keys)


_OPERATORS = {
    "LetterboxResize": LetterboxResize,
    "NormalizeImage": NormalizeImage,
    "ToCHWImage": ToCHWImage,
    "KeepKeys": KeepKeys,
}


def create_operators(op_param_list: List[Dict]):
    """Create preprocessing operators from config list.

    Args:
        op_param_list: List of dicts like [{"OpName": {params}}]

    Returns:
        List of operator instances
    """
    ops = []
    for operator in op_param_list:
        if not isinstance(operator, dict) or len(operator) != 1:
            raise ValueError(f"Operator entry must be a single-key dict, got {operator!r}")
        op_name = list(operator)[0]
        if op_name not in _OPERATORS:
            raise ValueError(f"Unknown preprocessing operator: {op_name}")
        param = {} if operator[op_name] is None else operator[op_name]
        ops.append(_OPERATORS[op_name](**param))
    return ops


def transform(data: Dict, ops: List) -> Tuple:
    """Apply preprocessing operators sequentially.

    Args:
        data: Dictionary containing 'image' key
        ops: List of operator instances

    Returns:
        Output of the last operator (a tuple when it is KeepKeys)
    """
    for op in ops:
        data = op(data)
        if data is None:
            return None
    return data


def letterbox_ops(size: Sequence[int], align: str = "MID_CENTER",
                  pad_color: Sequence[int] = (0, 0, 0)) -> List:
    """Standard letterbox → RGB/255 → CHW chain used by every stage."""
    return create_operators([
        {"LetterboxResize": {"size": size, "align": align, "pad_color": pad_color}},
        {"NormalizeImage": {"scale": 1.0 / 255.0, "swap_rb": True}},
        {"ToCHWImage": None},
        {"KeepKeys": {"keep_keys": ["image", "resizer"]}},
    ])
