"""Configuration for the card segmentation model."""

from dataclasses import dataclass, field
from typing import List, Tuple

DEFAULT_LABELS = ["kartu", "ktp", "ktp-fc"]


@dataclass
class SegmenterConfig:
    """Configuration for card instance segmentation."""
    labels: List[str] = field(default_factory=lambda: list(DEFAULT_LABELS))
    confidence: float = 0.8  # Minimum detection score
    input_size: Tuple[int, int] = (640, 640)  # (W, H) when the model shape is dynamic
    use_gpu: bool = False  # Enable CUDA GPU acceleration
    use_tensorrt: bool = False  # Enable TensorRT acceleration

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")
        if not self.labels:
            raise ValueError("labels must not be empty")
