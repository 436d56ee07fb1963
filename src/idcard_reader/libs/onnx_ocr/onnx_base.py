"""Base class for ONNX Runtime inference with GPU/TensorRT support."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import onnxruntime
from onnxruntime.capi import _pybind_state as C

logger = logging.getLogger(__name__)


class ONNXRuntimeError(Exception):
    """Exception raised when ONNX Runtime fails to run a model."""
    pass


class ONNXInferenceBase:
    """Base class for ONNX inference with hardware acceleration."""

    def __init__(
        self,
        model_path: Union[str, Path],
        use_gpu: bool = False,
        use_tensorrt: bool = False,
    ):
        """Initialize ONNX Runtime session.

        Args:
            model_path: Path to ONNX model file
            use_gpu: Enable CUDA GPU acceleration
            use_tensorrt: Enable TensorRT acceleration (requires TensorRT)
        """
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(f"Model not found: {model_path}")

        # Setup providers (TensorRT > CUDA > CPU)
        providers = self._get_providers(use_gpu, use_tensorrt)

        self.session = onnxruntime.InferenceSession(
            str(self.model_path),
            None,
            providers=providers
        )

        # Cache input/output metadata
        self.input_names = [node.name for node in self.session.get_inputs()]
        self.output_names = [node.name for node in self.session.get_outputs()]
        self.input_shape = list(self.session.get_inputs()[0].shape)

        logger.info(
            f"Loaded {self.model_path.name} "
            f"(inputs={self.input_names}, outputs={self.output_names}, "
            f"providers={self.session.get_providers()})"
        )

    def _get_providers(self, use_gpu: bool, use_tensorrt: bool) -> List:
        """Get execution providers based on hardware availability.

        Priority: TensorRT > CUDA > CPU
        """
        available_providers = C.get_available_providers()
        providers = []

        if use_tensorrt and "TensorrtExecutionProvider" in available_providers:
            providers.append(('TensorrtExecutionProvider', {}))

        if use_gpu and "CUDAExecutionProvider" in available_providers:
            providers.append((
                'CUDAExecutionProvider',
                {"cudnn_conv_algo_search": "DEFAULT"}
            ))

        # CPU (always available as fallback)
        providers.append('CPUExecutionProvider')

        return providers

    def run(self, input_data: dict) -> List[np.ndarray]:
        """Run inference on input data.

        Args:
            input_data: Dictionary mapping input names to numpy arrays

        Returns:
            List of output arrays, in ``output_names`` order

        Raises:
            ONNXRuntimeError: If the engine rejects the input or fails
        """
        try:
            return self.session.run(self.output_names, input_feed=input_data)
        except Exception as e:
            raise ONNXRuntimeError(
                f"Inference failed for {self.model_path.name}: {e}"
            ) from e

    def get_input_feed(self, image_array):
        """Create input feed dictionary.

        Args:
            image_array: Numpy array or list of arrays

        Returns:
            Dictionary mapping input names to arrays
        """
        if len(self.input_names) == 1:
            return {self.input_names[0]: image_array}
        else:
            return {
                name: image_array[i]
                for i, name in enumerate(self.input_names)
            }

    def __repr__(self):
        return f"ONNXInferenceBase(model={self.model_path.name})"


def resolve_session(model, use_gpu: bool = False, use_tensorrt: bool = False):
    """Return ``model`` if it is already a session, else load it from a path.

    Any object with ``run``, ``get_input_feed`` and ``input_shape`` is
    accepted, so stages can share one session or run against a stand-in.
    """
    if isinstance(model, (str, Path)):
        return ONNXInferenceBase(model, use_gpu=use_gpu, use_tensorrt=use_tensorrt)
    return model


def spatial_size(
    input_shape: Sequence,
    fallback: Tuple[int, int],
) -> Tuple[int, int]:
    """(width, height) from an NCHW input shape.

    Dynamic dimensions (strings or None in the model metadata) fall back
    to the configured size.
    """
    height: Optional[int] = None
    width: Optional[int] = None
    if len(input_shape) == 4:
        h, w = input_shape[2], input_shape[3]
        height = h if isinstance(h, int) and h > 0 else None
        width = w if isinstance(w, int) and w > 0 else None
    return (width or fallback[0], height or fallback[1])
