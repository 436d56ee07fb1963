"""Perspective rectification of a detected card into a flat canonical image."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from ...types import CornerQuad, Rect
from .corners import find_corners

logger = logging.getLogger(__name__)


@dataclass
class RectifyConfig:
    """Configuration for card rectification."""
    output_size: Tuple[int, int] = (640, 404)  # (width, height) of the landscape result
    iou_threshold: float = 0.9  # Min agreement between threshold hull and mask
    interpolation: int = cv2.INTER_CUBIC


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Single-channel copy of a BGR, BGRA or gray image."""
    if image.ndim == 2:
        return image.copy()
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if image.shape[2] == 1:
        return image[:, :, 0].copy()
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def mask_iou(a: np.ndarray, b: np.ndarray) -> float:
    """Intersection over union of the nonzero pixels of two masks."""
    a = a > 0
    b = b > 0
    union = np.count_nonzero(a | b)
    if union == 0:
        return 0.0
    return np.count_nonzero(a & b) / union


def largest_contour(binary: np.ndarray) -> Optional[np.ndarray]:
    """External contour with the largest area, or None if there is none."""
    contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    if not contours:
        return None
    return max(contours, key=cv2.contourArea)


def find_document_hull(crop: np.ndarray, mask: np.ndarray, iou_threshold: float = 0.9):
    """Convex hull of the card outline inside a cropped detection.

    The crop is masked by the detection mask, Otsu-binarized and its largest
    external contour is hulled. When that hull disagrees with the mask
    (IoU below ``iou_threshold``) the hull of the mask contour is used.

    Args:
        crop: Cropped image (BGR, BGRA or gray) of the detection box.
        mask: uint8 detection mask with the same height/width as ``crop``.
        iou_threshold: Minimum IoU to keep the threshold hull.

    Returns:
        Tuple of (hull, used_mask_fallback); hull is None when neither
        source yields a contour.
    """
    if crop.shape[:2] != mask.shape[:2]:
        raise ValueError(
            f"Mask shape {mask.shape[:2]} does not match crop shape {crop.shape[:2]}"
        )

    gray = to_grayscale(crop)
    gray = (gray.astype(np.uint16) * mask.astype(np.uint16) // 255).astype(np.uint8)

    _, binary = cv2.threshold(gray, 128, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    contour = largest_contour(binary)

    hull = None
    if contour is not None:
        hull = cv2.convexHull(contour)
        trial = np.zeros(mask.shape[:2], dtype=np.uint8)
        cv2.drawContours(trial, [hull], 0, 255, cv2.FILLED)
        iou = mask_iou(trial, mask)
        if iou >= iou_threshold:
            return hull, False
        logger.debug(f"Threshold hull disagrees with mask (IoU={iou:.3f}), using mask contour")
    else:
        logger.debug("No contour after thresholding, using mask contour")

    mask_contour = largest_contour((mask > 0).astype(np.uint8) * 255)
    if mask_contour is None:
        return hull, False
    return cv2.convexHull(mask_contour), True


def warp_corners(
    image: np.ndarray,
    corners: CornerQuad,
    portrait: bool,
    config: RectifyConfig,
) -> np.ndarray:
    """Warp the quad spanned by ``corners`` onto the canonical canvas."""
    width, height = config.output_size
    if portrait:
        width, height = height, width

    src = corners.to_array()
    dst = np.array(
        [[0, 0], [width, 0], [0, height], [width, height]],
        dtype=np.float32,
    )
    matrix = cv2.getPerspectiveTransform(src, dst)
    warped = cv2.warpPerspective(
        image,
        matrix,
        (width, height),
        flags=config.interpolation,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )
    if portrait:
        warped = cv2.rotate(warped, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return warped


def rectify(
    image: np.ndarray,
    area: Rect,
    mask: np.ndarray,
    config: Optional[RectifyConfig] = None,
) -> Optional[np.ndarray]:
    """Flatten the card inside ``area`` into a landscape image.

    Args:
        image: Full source image; it is never modified.
        area: Detection box in the frame of ``image``.
        mask: uint8 detection mask sized to ``area``.
        config: Rectification settings (defaults if None).

    Returns:
        Image of ``config.output_size`` (640x404 by default), or None when
        no card outline could be found.
    """
    if config is None:
        config = RectifyConfig()

    if area.is_empty():
        logger.debug(f"Empty rectification area {area}")
        return None

    crop = area.crop(image)
    hull, used_fallback = find_document_hull(crop, mask, config.iou_threshold)
    if hull is None:
        logger.warning(f"No card outline found inside {area.to_xyxy()}")
        return None

    corners = find_corners(hull).offset(area.x, area.y)
    portrait = area.height > area.width

    logger.debug(
        f"Rectifying {area.to_xyxy()} (portrait={portrait}, mask_fallback={used_fallback})"
    )
    return warp_corners(image, corners, portrait, config)
