"""
Unit tests for the letterbox transform.

Covers scale/padding computation, image resizing and the coordinate
mapping between the model input frame and the original frame.
"""

import numpy as np
import pytest

from idcard_reader.libs.geometry import LetterboxResizer, ResizeAlign, compute_transform
from idcard_reader.types import Frame, InvalidDimensionError, Point, Rect, Size

ALIGNMENTS = [
    ResizeAlign.TOP_LEFT,
    ResizeAlign.TOP_RIGHT,
    ResizeAlign.MID_CENTER,
    ResizeAlign.MID_LEFT,
    ResizeAlign.BOTTOM_CENTER,
    ResizeAlign.BOTTOM_RIGHT,
]


class TestComputeTransform:
    """Test ratio and padding computation."""

    def test_landscape_into_square_centered(self):
        """Wide image is padded equally above and below."""
        ctx = compute_transform((1280, 720), (640, 640))

        assert ctx.ratio == pytest.approx(0.5)
        assert ctx.scaled_size == Size(640, 360)
        assert (ctx.pad_left, ctx.pad_right) == (0, 0)
        assert (ctx.pad_top, ctx.pad_bottom) == (140, 140)

    def test_padding_always_fills_canvas(self):
        """pad + scaled + pad equals the canvas on both axes."""
        for src in [(801, 599), (37, 1000), (640, 640), (3, 2)]:
            for align in ALIGNMENTS:
                ctx = compute_transform(src, (640, 480), align)
                assert ctx.pad_left + ctx.scaled_size.width + ctx.pad_right == 640
                assert ctx.pad_top + ctx.scaled_size.height + ctx.pad_bottom == 480

    def test_top_left_puts_padding_right_and_bottom(self):
        ctx = compute_transform((100, 20), (320, 48), ResizeAlign.TOP_LEFT)

        assert ctx.ratio == pytest.approx(2.4)
        assert (ctx.pad_left, ctx.pad_top) == (0, 0)
        assert ctx.pad_right == 320 - 240
        assert ctx.pad_bottom == 0

    def test_zero_dimension_raises(self):
        with pytest.raises(InvalidDimensionError):
            compute_transform((0, 100), (640, 640))
        with pytest.raises(InvalidDimensionError):
            LetterboxResizer((100, 100), (640, 0))

    def test_invalid_dimension_is_value_error(self):
        with pytest.raises(ValueError):
            Size(-1, 10)


class TestScaleImage:
    """Test image resizing and padding."""

    def test_output_has_canvas_shape(self):
        image = np.full((600, 800, 3), 200, dtype=np.uint8)
        resizer = LetterboxResizer(Size.from_image(image), (640, 640))

        out = resizer.scale_image(image)

        assert out.shape == (640, 640, 3)
        assert np.all(out[:80] == 0), "Top padding should be black"
        assert np.all(out[560:] == 0), "Bottom padding should be black"
        assert np.all(np.abs(out[80:560].astype(int) - 200) <= 1)

    def test_pad_color(self):
        image = np.zeros((20, 100, 3), dtype=np.uint8)
        resizer = LetterboxResizer((100, 20), (320, 48), ResizeAlign.TOP_LEFT)

        out = resizer.scale_image(image, pad_color=(255, 255, 255))

        assert out.shape == (48, 320, 3)
        assert np.all(out[:, 240:] == 255)

    def test_source_is_not_modified(self):
        image = np.full((50, 100, 3), 7, dtype=np.uint8)
        before = image.copy()

        LetterboxResizer((100, 50), (64, 64)).scale_image(image)

        np.testing.assert_array_equal(image, before)

    def test_revert_image_restores_size(self):
        image = np.zeros((600, 800), dtype=np.uint8)
        resizer = LetterboxResizer((800, 600), (640, 640))

        restored = resizer.revert_image(resizer.scale_image(image))

        assert restored.shape == (600, 800)


class TestPointMapping:
    """Test point mapping in both directions."""

    def test_scale_point_includes_padding(self):
        resizer = LetterboxResizer((800, 600), (640, 640))

        p = resizer.scale_point(Point(100, 100))

        assert p == Point(80, 160)

    def test_round_trip_within_one_pixel_when_upscaling(self):
        resizer = LetterboxResizer((100, 50), (640, 640))

        for x, y in [(1, 1), (37, 21), (50, 25), (99, 49), (63.5, 12.25)]:
            back = resizer.revert_point(resizer.scale_point(Point(x, y)))
            assert abs(back.x - x) <= 1, f"x drifted for {(x, y)}"
            assert abs(back.y - y) <= 1, f"y drifted for {(x, y)}"

    def test_revert_point_clamps_padding_to_image(self):
        resizer = LetterboxResizer((800, 600), (640, 640))

        assert resizer.revert_point(Point(0, 0)) == Point(0, 0)
        assert resizer.revert_point(Point(640, 640), round_up=True) == Point(800, 600)


class TestRectMapping:
    """Test box mapping and frame checks."""

    def test_revert_rect_matches_letterbox(self):
        resizer = LetterboxResizer((800, 600), (640, 640))
        box = Rect.from_xyxy(160, 200, 480, 400, frame=Frame.INPUT)

        out = resizer.revert_rect(box)

        assert out.frame is Frame.ORIGINAL
        assert out.to_xyxy() == [200, 150, 600, 400]

    def test_round_trip_never_negative(self):
        resizer = LetterboxResizer((1000, 333), (64, 64))

        for rect in [Rect(0, 0, 1, 1), Rect(999, 332, 1, 1), Rect(10, 10, 0, 0), Rect(5, 300, 900, 33)]:
            back = resizer.revert_rect(resizer.scale_rect(rect))
            assert back.width >= 0 and back.height >= 0

    def test_scale_rect_grows_outwards(self):
        resizer = LetterboxResizer((100, 100), (33, 33))

        out = resizer.scale_rect(Rect(10, 10, 15, 15))

        assert out.frame is Frame.INPUT
        assert out.x == 3 and out.y == 3
        assert out.x2 == 9 and out.y2 == 9

    def test_frame_mismatch_raises(self):
        resizer = LetterboxResizer((100, 100), (64, 64))

        with pytest.raises(ValueError):
            resizer.scale_rect(Rect(0, 0, 10, 10, frame=Frame.INPUT))
        with pytest.raises(ValueError):
            resizer.revert_rect(Rect(0, 0, 10, 10, frame=Frame.ORIGINAL))
