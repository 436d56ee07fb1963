"""Letterbox resize and the coordinate mapping between both frames."""

import math
from enum import IntFlag
from typing import Sequence, Tuple, Union

import cv2
import numpy as np

from ...types import Frame, Point, Rect, Size, TransformContext


class ResizeAlign(IntFlag):
    """Where the scaled image sits inside the padded canvas.

    Bits 0-1 hold the horizontal anchor, bits 2-3 the vertical one.
    """

    LEFT = 0x00
    CENTER = 0x01
    RIGHT = 0x02
    TOP = 0x00
    MID = 0x04
    BOTTOM = 0x08

    TOP_LEFT = TOP | LEFT
    TOP_CENTER = TOP | CENTER
    TOP_RIGHT = TOP | RIGHT
    MID_LEFT = MID | LEFT
    MID_CENTER = MID | CENTER
    MID_RIGHT = MID | RIGHT
    BOTTOM_LEFT = BOTTOM | LEFT
    BOTTOM_CENTER = BOTTOM | CENTER
    BOTTOM_RIGHT = BOTTOM | RIGHT


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def _round(value: float, round_up: bool) -> int:
    return math.ceil(value) if round_up else math.floor(value)


def compute_transform(
    src_size: Union[Size, Sequence[int]],
    dst_size: Union[Size, Sequence[int]],
    align: ResizeAlign = ResizeAlign.MID_CENTER,
) -> TransformContext:
    """Compute scale ratio and padding for fitting src into dst.

    Raises:
        InvalidDimensionError: If either size has a zero dimension.
    """
    src = Size.of(src_size)
    dst = Size.of(dst_size)

    ratio = min(dst.width / src.width, dst.height / src.height)
    width = max(int(math.floor(src.width * ratio)), 1)
    height = max(int(math.floor(src.height * ratio)), 1)

    dw = dst.width - width
    dh = dst.height - height

    if align & ResizeAlign.CENTER:
        left = dw // 2
    elif align & ResizeAlign.RIGHT:
        left = dw
    else:
        left = 0

    if align & ResizeAlign.MID:
        top = dh // 2
    elif align & ResizeAlign.BOTTOM:
        top = dh
    else:
        top = 0

    return TransformContext(
        ratio=ratio,
        pad_left=left,
        pad_top=top,
        pad_right=dw - left,
        pad_bottom=dh - top,
        src_size=src,
        dst_size=dst,
        scaled_size=Size(width, height),
    )


class LetterboxResizer:
    """Aspect-preserving resize into a fixed canvas, plus its inverse.

    Points and boxes are mapped with floor on min corners and ceil on max
    corners, so a box never collapses after a round trip.

    Usage:
        resizer = LetterboxResizer(Size(1280, 720), Size(640, 640))
        canvas = resizer.scale_image(image)
        box = resizer.revert_rect(model_box)
    """

    def __init__(
        self,
        src_size: Union[Size, Sequence[int]],
        dst_size: Union[Size, Sequence[int]],
        align: ResizeAlign = ResizeAlign.MID_CENTER,
    ):
        self.align = align
        self.context = compute_transform(src_size, dst_size, align)

    @property
    def ratio(self) -> float:
        return self.context.ratio

    @property
    def src_size(self) -> Size:
        return self.context.src_size

    @property
    def dst_size(self) -> Size:
        return self.context.dst_size

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def scale_image(
        self,
        image: np.ndarray,
        pad_color: Tuple[int, ...] = (0, 0, 0),
        interpolation: int = cv2.INTER_CUBIC,
    ) -> np.ndarray:
        """Resize ``image`` into the canvas and pad the remainder."""
        ctx = self.context
        resized = cv2.resize(image, ctx.scaled_size.as_tuple(), interpolation=interpolation)
        return cv2.copyMakeBorder(
            resized,
            ctx.pad_top,
            ctx.pad_bottom,
            ctx.pad_left,
            ctx.pad_right,
            cv2.BORDER_CONSTANT,
            value=pad_color,
        )

    def revert_image(
        self,
        image: np.ndarray,
        interpolation: int = cv2.INTER_CUBIC,
    ) -> np.ndarray:
        """Strip the padding from a canvas-sized array and resize it back."""
        ctx = self.context
        roi = image[
            ctx.pad_top:ctx.pad_top + ctx.scaled_size.height,
            ctx.pad_left:ctx.pad_left + ctx.scaled_size.width,
        ]
        return cv2.resize(roi, ctx.src_size.as_tuple(), interpolation=interpolation)

    # ------------------------------------------------------------------
    # Points and boxes
    # ------------------------------------------------------------------

    def scale_point(self, point: Point, round_up: bool = False) -> Point:
        ctx = self.context
        x = _clamp(_round(point.x * ctx.ratio, round_up), 0, ctx.scaled_size.width)
        y = _clamp(_round(point.y * ctx.ratio, round_up), 0, ctx.scaled_size.height)
        return Point(x + ctx.pad_left, y + ctx.pad_top)

    def revert_point(self, point: Point, round_up: bool = False) -> Point:
        ctx = self.context
        x = _round((point.x - ctx.pad_left) / ctx.ratio, round_up)
        y = _round((point.y - ctx.pad_top) / ctx.ratio, round_up)
        return Point(
            _clamp(x, 0, ctx.src_size.width),
            _clamp(y, 0, ctx.src_size.height),
        )

    def scale_rect(self, rect: Rect) -> Rect:
        """Map an original-frame box into the input frame."""
        if rect.frame is not Frame.ORIGINAL:
            raise ValueError(f"scale_rect expects an ORIGINAL-frame box, got {rect.frame.name}")
        pt1 = self.scale_point(Point(rect.x, rect.y))
        pt2 = self.scale_point(Point(rect.x2, rect.y2), round_up=True)
        return Rect.from_xyxy(pt1.x, pt1.y, pt2.x, pt2.y, frame=Frame.INPUT)

    def revert_rect(self, rect: Rect) -> Rect:
        """Map an input-frame box back into the original frame."""
        if rect.frame is not Frame.INPUT:
            raise ValueError(f"revert_rect expects an INPUT-frame box, got {rect.frame.name}")
        pt1 = self.revert_point(Point(rect.x, rect.y))
        pt2 = self.revert_point(Point(rect.x2, rect.y2), round_up=True)
        return Rect.from_xyxy(pt1.x, pt1.y, pt2.x, pt2.y, frame=Frame.ORIGINAL)

    def __repr__(self):
        ctx = self.context
        return (
            f"LetterboxResizer({ctx.src_size.width}x{ctx.src_size.height} -> "
            f"{ctx.dst_size.width}x{ctx.dst_size.height}, ratio={ctx.ratio:.4f}, "
            f"align={self.align!r})"
        )
