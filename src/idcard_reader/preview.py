"""
Preview image generator: shows the detected card with its mask on the source
photo and, next to it, the rectified card with every text box and string.

Output is a PNG built with Pillow.
"""

from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .libs.onnx_ocr.utils import clip_rect, draw_overlay
from .types import Detection, PipelineResult


# ---------------------------------------------------------------------------
# Colours  (R, G, B)
# ---------------------------------------------------------------------------
_CARD_COLOR = (41, 98, 255)  # blue
_TEXT_COLOR = (56, 142, 60)  # green
_FAILED_COLOR = (211, 47, 47)  # red
_BACKGROUND = (240, 240, 240)

# Mask opacity for the card overlay
_MASK_TRANSPARENCY = 0.4
# Border width in pixels
_BORDER_WIDTH = 3
# Gap between the two panels
_GAP = 16


def _load_font(size: int) -> ImageFont.FreeTypeFont:
    """Try to load a reasonable font; fall back to default bitmap font."""
    candidates = [
        "/System/Library/Fonts/Helvetica.ttc",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    ]
    for path in candidates:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default()


def _to_pil(image: np.ndarray) -> Image.Image:
    """BGR / BGRA / gray array to an RGB Pillow image."""
    if image.ndim == 2:
        rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    elif image.shape[2] == 4:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    else:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)


def _overlay_mask(image: np.ndarray, detection: Detection) -> np.ndarray:
    """Blend the detection mask over its box; returns a new image."""
    out = image.copy()
    h, w = out.shape[:2]
    box = clip_rect(detection.bbox, w, h)
    if box.is_empty():
        return out

    dx, dy = box.x - detection.bbox.x, box.y - detection.bbox.y
    mask = detection.mask[dy:dy + box.height, dx:dx + box.width]
    if mask.shape[:2] != (box.height, box.width):
        return out

    # Colours are RGB, the array is BGR
    out[box.y:box.y2, box.x:box.x2] = draw_overlay(
        out[box.y:box.y2, box.x:box.x2], mask, (*_CARD_COLOR[::-1], 255), _MASK_TRANSPARENCY
    )
    return out


def _draw_box(
    draw: ImageDraw.ImageDraw,
    xyxy,
    color: Tuple[int, int, int],
    label: str,
    font: ImageFont.FreeTypeFont,
) -> None:
    x1, y1, x2, y2 = xyxy
    for i in range(_BORDER_WIDTH):
        draw.rectangle([x1 - i, y1 - i, x2 + i, y2 + i], outline=color)

    if not label:
        return
    lbox = draw.textbbox((0, 0), label, font=font)
    lw, lh = lbox[2] - lbox[0], lbox[3] - lbox[1]
    top = max(y1 - lh - 6, 0)
    draw.rectangle([x1, top, x1 + lw + 6, top + lh + 4], fill=color)
    draw.text((x1 + 3, top + 1), label, fill=(255, 255, 255), font=font)


def _source_panel(image: np.ndarray, result: PipelineResult) -> Image.Image:
    if result.detection is not None:
        image = _overlay_mask(image, result.detection)
    panel = _to_pil(image)

    if result.detection is not None:
        draw = ImageDraw.Draw(panel)
        det = result.detection
        color = _CARD_COLOR if result.is_success() else _FAILED_COLOR
        _draw_box(
            draw,
            det.bbox.to_xyxy(),
            color,
            f"{det.label} ({det.confidence:.0%})",
            _load_font(max(12, panel.height // 40)),
        )
    return panel


def _card_panel(result: PipelineResult) -> Image.Image:
    if result.rectified is None:
        panel = Image.new("RGB", (640, 404), _BACKGROUND)
        draw = ImageDraw.Draw(panel)
        draw.text((16, 16), result.message, fill=_FAILED_COLOR, font=_load_font(20))
        return panel

    panel = _to_pil(result.rectified)
    draw = ImageDraw.Draw(panel)
    font = _load_font(14)
    for item in result.texts:
        _draw_box(draw, item.bbox.to_xyxy(), _TEXT_COLOR, item.text, font)
    return panel


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_preview(image: np.ndarray, result: PipelineResult) -> Image.Image:
    """Build the side-by-side preview for one pipeline result.

    Args:
        image: The BGR image that was passed to the pipeline.
        result: Its ``PipelineResult``.

    Returns:
        RGB Pillow image: source on the left, rectified card on the right.
    """
    source = _source_panel(image, result)
    card = _card_panel(result)

    width = source.width + _GAP + card.width
    height = max(source.height, card.height)
    canvas = Image.new("RGB", (width, height), _BACKGROUND)
    canvas.paste(source, (0, 0))
    canvas.paste(card, (source.width + _GAP, 0))
    return canvas


def generate_preview(
    image: np.ndarray,
    result: PipelineResult,
    output_path: Union[str, Path],
) -> Path:
    """Render the preview for ``result`` and save it as PNG.

    Args:
        image: The BGR image that was passed to the pipeline.
        result: Its ``PipelineResult``.
        output_path: Where to save the preview (parent dirs are created).

    Returns:
        Path of the written file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    render_preview(image, result).save(output_path, format="PNG")
    return output_path
