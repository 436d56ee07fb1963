"""Stage facades built on the ONNX model wrappers."""
