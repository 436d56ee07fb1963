"""
Main Pipeline for ID Card Reading
Orchestrates card localization, rectification and text reading
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence, Union

import cv2
import numpy as np

from .libs.geometry import RectifyConfig
from .libs.onnx_ocr import DetectorConfig, RecognizerConfig, TextDetector, TextRecognizer
from .libs.yolo_seg import CardSegmenter, SegmenterConfig
from .models import ModelRegistry
from .modules.card import CardLocator, LocatorConfig
from .modules.text import ReaderConfig, TextReader
from .types import PipelineResult, PipelineStatus

logger = logging.getLogger(__name__)


class IDCardPipeline:
    """
    Complete pipeline for ID card reading

    Workflow:
    1. Card Segmentation (YOLO-seg) - Detect cards with instance masks
    2. Candidate Selection - Keep the best detection that looks like a card
    3. Rectification - Warp the card flat to 640x404
    4. Text Reading (DBNet + CRNN) - Detect and recognize text lines

    Stage objects only hold configuration and ONNX sessions, so one pipeline
    can serve several threads at once.
    """

    def __init__(self, locator: CardLocator, reader: Optional[TextReader] = None):
        """
        Initialize pipeline

        Args:
            locator: Card localization stage
            reader: Text reading stage; None stops after rectification
        """
        self.locator = locator
        self.reader = reader

    @classmethod
    def from_registry(
        cls,
        registry: Optional[ModelRegistry] = None,
        segmenter_config: Optional[SegmenterConfig] = None,
        detector_config: Optional[DetectorConfig] = None,
        recognizer_config: Optional[RecognizerConfig] = None,
        locator_config: Optional[LocatorConfig] = None,
        reader_config: Optional[ReaderConfig] = None,
        rectify_config: Optional[RectifyConfig] = None,
        read_text: bool = True,
        use_gpu: bool = False,
    ) -> "IDCardPipeline":
        """
        Build a pipeline with sessions loaded from the model registry

        Args:
            registry: Model file resolver (default: environment settings)
            segmenter_config: Card segmenter settings
            detector_config: Text detector settings
            recognizer_config: Text recognizer settings
            locator_config: Candidate selection policy
            reader_config: Text reader settings
            rectify_config: Rectification settings
            read_text: Load the text models and read the rectified card
            use_gpu: Enable CUDA for configs that are built here

        Returns:
            Ready pipeline
        """
        registry = registry or ModelRegistry()

        logger.info("Initializing ID card pipeline...")
        segmenter = CardSegmenter(
            registry.get("card_segmenter"),
            segmenter_config or SegmenterConfig(use_gpu=use_gpu),
        )
        locator = CardLocator(segmenter, locator_config, rectify_config)

        reader = None
        if read_text:
            detector = TextDetector(
                registry.get("text_detector"),
                detector_config or DetectorConfig(use_gpu=use_gpu),
            )
            recognizer = TextRecognizer(
                registry.get("text_recognizer"),
                recognizer_config or RecognizerConfig(use_gpu=use_gpu),
            )
            reader = TextReader(detector, recognizer, reader_config)

        logger.info("Pipeline ready")
        return cls(locator, reader)

    def process_image(self, image: np.ndarray) -> PipelineResult:
        """
        Process a single image

        Args:
            image: BGR image (H, W, 3); left untouched

        Returns:
            Pipeline result; a missing card is reported through its status
        """
        # Step 1: Segment cards
        detections = self.locator.detect(image)

        # Step 2: Pick the card
        candidate = self.locator.select_candidate(detections)
        if candidate is None:
            logger.warning(f"No card candidate among {len(detections)} detection(s)")
            return PipelineResult(PipelineStatus.NO_CANDIDATE, detections=detections)

        # Step 3: Flatten it
        rectified = self.locator.rectify(image, candidate)
        if rectified is None:
            logger.warning(f"Could not rectify card at {candidate.bbox.to_xyxy()}")
            return PipelineResult(
                PipelineStatus.RECTIFY_FAILED,
                detection=candidate,
                detections=detections,
            )

        # Step 4: Read it
        texts = self.reader.read(rectified) if self.reader is not None else []
        logger.info(f"Read {len(texts)} text region(s)")

        return PipelineResult(
            PipelineStatus.SUCCESS,
            detection=candidate,
            rectified=rectified,
            texts=texts,
            detections=detections,
        )

    def process_images(
        self,
        images: Sequence[np.ndarray],
        parallel: bool = True,
        max_workers: Optional[int] = None,
    ) -> List[PipelineResult]:
        """
        Process several images, optionally one per thread

        Args:
            images: BGR images
            parallel: Run images concurrently on a thread pool
            max_workers: Thread pool size (default: executor default)

        Returns:
            One result per image, in input order

        Raises:
            The first error raised while processing any image
        """
        if not parallel:
            return [self.process_image(image) for image in images]

        results: List[Optional[PipelineResult]] = [None] * len(images)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(self.process_image, image): i
                for i, image in enumerate(images)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception:
                    logger.error(f"Image {index} failed")
                    raise
                logger.debug(f"Completed image {index}")

        return results

    def process_file(self, path: Union[str, Path]) -> PipelineResult:
        """Decode an image file and process it."""
        return self.process_image(load_image(path))

    def __repr__(self):
        return (
            f"IDCardPipeline(\n"
            f"  locator={self.locator},\n"
            f"  reader={self.reader}\n"
            f")"
        )


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Read an image file as BGR

    Raises:
        FileNotFoundError: Path does not exist
        ValueError: File could not be decoded
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image file '{path}' not found")

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Could not decode image '{path}'")
    return image
