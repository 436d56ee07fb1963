"""Configuration classes for OCR modules."""

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass
class DetectorConfig:
    """Configuration for text detection stage."""
    det_db_thresh: float = 0.3  # Binarization threshold on the probability map
    det_db_unclip_ratio: float = 2.0  # Text region expansion ratio
    det_db_box_min_area: float = 64  # Minimum contour area in model-input pixels
    apply_sigmoid: bool = True  # Model emits logits instead of probabilities
    input_size: Tuple[int, int] = (1024, 1024)  # (W, H) when the model shape is dynamic
    use_gpu: bool = False  # Enable CUDA GPU acceleration
    use_tensorrt: bool = False  # Enable TensorRT acceleration


@dataclass
class RecognizerConfig:
    """Configuration for text recognition stage."""
    rec_image_shape: List[int] = None  # [C, H, W] when the model shape is dynamic
    rec_batch_num: int = 32  # Crops per inference call
    vocab: Optional[str] = None  # Vocabulary string (default Latin set if None)
    char_dict_path: Optional[str] = None  # One character per line, overrides vocab
    use_gpu: bool = False  # Enable CUDA GPU acceleration
    use_tensorrt: bool = False  # Enable TensorRT acceleration

    def __post_init__(self):
        if self.rec_image_shape is None:
            self.rec_image_shape = [3, 48, 320]
        if self.rec_batch_num < 1:
            raise ValueError(f"rec_batch_num must be >= 1, got {self.rec_batch_num}")
