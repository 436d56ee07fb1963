"""Utility functions for OCR pipeline."""

from typing import List, Sequence, Tuple

import cv2
import numpy as np

from ...types import Rect, TextRegion


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Logistic function, stable for large negative inputs."""
    x = np.asarray(x, dtype=np.float32)
    return 0.5 * (1.0 + np.tanh(0.5 * x))


def softmax(x: np.ndarray, axis: int = -1) -> np.ndarray:
    x = np.asarray(x, dtype=np.float32)
    e = np.exp(x - x.max(axis=axis, keepdims=True))
    return e / e.sum(axis=axis, keepdims=True)


def clip_rect(rect: Rect, width: int, height: int) -> Rect:
    """Intersect ``rect`` with the image bounds."""
    x1 = min(max(rect.x, 0), width)
    y1 = min(max(rect.y, 0), height)
    x2 = min(max(rect.x2, 0), width)
    y2 = min(max(rect.y2, 0), height)
    return Rect.from_xyxy(x1, y1, x2, y2, frame=rect.frame)


def crop_regions(img: np.ndarray, regions: Sequence[TextRegion]) -> List[Tuple[TextRegion, np.ndarray]]:
    """Crop every region from ``img``; empty crops are dropped."""
    h, w = img.shape[:2]
    crops = []
    for region in regions:
        box = clip_rect(region.bbox, w, h)
        if box.is_empty():
            continue
        crops.append((region, box.crop(img)))
    return crops


def sorted_regions(regions: Sequence[TextRegion], line_tolerance: int = 10) -> List[TextRegion]:
    """Sort text regions from top to bottom, left to right.

    Regions whose top edges differ by less than ``line_tolerance`` pixels are
    treated as one line and ordered by x.
    """
    _regions = sorted(regions, key=lambda r: (r.bbox.y, r.bbox.x))

    for i in range(len(_regions) - 1):
        for j in range(i, -1, -1):
            if abs(_regions[j + 1].bbox.y - _regions[j].bbox.y) < line_tolerance and \
               (_regions[j + 1].bbox.x < _regions[j].bbox.x):
                _regions[j], _regions[j + 1] = _regions[j + 1], _regions[j]
            else:
                break

    return _regions


def auto_contrast(image: np.ndarray, clip_hist_percent: float = 10) -> np.ndarray:
    """Stretch brightness so the clipped gray histogram spans 0-255.

    Args:
        image: BGR, BGRA or gray image
        clip_hist_percent: Percentage of pixels clipped, split over both ends

    Returns:
        New image with the same shape and dtype
    """
    if image.ndim == 2:
        gray = image
    elif image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    hist = cv2.calcHist([gray], [0], None, [256], [0, 256]).ravel()
    accumulator = np.cumsum(hist)

    maximum = accumulator[-1]
    clip = clip_hist_percent * maximum / 100.0 / 2.0

    minimum_gray = 0
    while minimum_gray < 255 and accumulator[minimum_gray] < clip:
        minimum_gray += 1

    maximum_gray = 255
    while maximum_gray > 0 and accumulator[maximum_gray] >= maximum - clip:
        maximum_gray -= 1

    if maximum_gray <= minimum_gray:
        return image.copy()

    alpha = 255.0 / (maximum_gray - minimum_gray)
    beta = -minimum_gray * alpha
    stretched = image.astype(np.float32) * alpha + beta
    return np.clip(np.round(stretched), 0, 255).astype(np.uint8)


def draw_overlay(
    image: np.ndarray,
    mask: np.ndarray,
    color: Tuple[int, ...],
    transparency: float = 0.5,
) -> np.ndarray:
    """Blend ``color`` over ``image`` weighted by ``mask`` (0-255).

    Returns:
        New image; ``image`` is left untouched.
    """
    if image.shape[:2] != mask.shape[:2]:
        raise ValueError(f"Mask shape {mask.shape[:2]} does not match image {image.shape[:2]}")

    channels = 1 if image.ndim == 2 else image.shape[2]
    beta = (transparency * mask.astype(np.float32) / 255.0)
    if image.ndim == 3:
        beta = beta[:, :, None]
    color_arr = np.array(color[:channels], dtype=np.float32)

    blended = image.astype(np.float32) * (1.0 - beta) + color_arr * beta
    return np.clip(blended, 0, 255).astype(image.dtype)
