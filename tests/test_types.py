"""Tests for the shared data types and the session wrapper."""

from pathlib import Path

import numpy as np
import pytest

from idcard_reader.libs.onnx_ocr.onnx_base import (
    ONNXInferenceBase,
    ONNXRuntimeError,
    resolve_session,
    spatial_size,
)
from idcard_reader.types import (
    CornerQuad,
    Frame,
    InvalidDimensionError,
    PipelineResult,
    PipelineStatus,
    Point,
    Rect,
    Size,
)


class TestGeometryTypes:
    def test_size_validation(self):
        with pytest.raises(InvalidDimensionError):
            Size(0, 5)
        assert Size.of((3, 4)) == Size(3, 4)
        assert Size.from_image(np.zeros((4, 3))) == Size(3, 4)

    def test_rect_is_frozen(self):
        rect = Rect(1, 2, 3, 4)

        with pytest.raises(AttributeError):
            rect.x = 5

    def test_rect_helpers(self):
        rect = Rect.from_xyxy(10, 20, 30, 60, frame=Frame.INPUT)

        assert (rect.width, rect.height, rect.area) == (20, 40, 800)
        assert rect.to_xyxy() == [10, 20, 30, 60]
        assert rect.frame is Frame.INPUT
        assert Rect(0, 0, 0, 3).is_empty()

    def test_corner_quad(self):
        quad = CornerQuad(Point(0, 0), Point(2, 0), Point(0, 1), Point(2, 1))

        moved = quad.offset(10, 20)

        assert moved.top_left == Point(10, 20)
        assert moved.to_array().shape == (4, 2)
        assert moved.to_array().dtype == np.float32


class TestPipelineResult:
    def test_messages(self):
        for status in PipelineStatus:
            assert PipelineResult(status).message

    def test_only_success_is_success(self):
        assert PipelineResult(PipelineStatus.SUCCESS).is_success()
        assert not PipelineResult(PipelineStatus.RECTIFY_FAILED).is_success()


class FailingSession:
    def run(self, output_names, input_feed):
        raise RuntimeError("[ONNXRuntimeError] INVALID_ARGUMENT")


class TestSessionWrapper:
    def test_missing_model_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ONNXInferenceBase(tmp_path / "missing.onnx")

    def test_engine_errors_are_wrapped(self):
        base = ONNXInferenceBase.__new__(ONNXInferenceBase)
        base.model_path = Path("dbnet.onnx")
        base.session = FailingSession()
        base.output_names = ["maps"]

        with pytest.raises(ONNXRuntimeError, match="dbnet.onnx") as excinfo:
            base.run({"x": np.zeros(1)})
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_resolve_session_passes_objects_through(self, fake_session):
        session = fake_session([1, 3, 8, 8], lambda batch: [])

        assert resolve_session(session) is session

    def test_resolve_session_loads_paths(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            resolve_session(str(tmp_path / "model.onnx"))

    @pytest.mark.parametrize("shape, expected", [
        ([1, 3, 640, 480], (480, 640)),
        ([1, 3, "h", "w"], (320, 240)),
        (["batch", 3, 48, None], (320, 48)),
        ([1, 3], (320, 240)),
    ])
    def test_spatial_size(self, shape, expected):
        assert spatial_size(shape, (320, 240)) == expected
