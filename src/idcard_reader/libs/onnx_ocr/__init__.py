"""
ONNX text reading library

Two independent stages:
- TextDetector: Finds text regions in images (DBNet)
- TextRecognizer: Converts text crops to strings (CRNN + greedy CTC)

Each module has its own pre/post-processing and accepts either a model path
or an already loaded inference session.
"""

from .text_detector import TextDetector
from .text_recognizer import TextRecognizer
from .config import DetectorConfig, RecognizerConfig
from .onnx_base import ONNXInferenceBase, ONNXRuntimeError
from .postprocess import CTCLabelDecode, DBPostProcess, DEFAULT_VOCAB

__all__ = [
    "TextDetector",
    "TextRecognizer",
    "DetectorConfig",
    "RecognizerConfig",
    "ONNXInferenceBase",
    "ONNXRuntimeError",
    "CTCLabelDecode",
    "DBPostProcess",
    "DEFAULT_VOCAB",
]
