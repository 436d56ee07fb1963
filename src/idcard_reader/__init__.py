"""
ID Card Reading Library
Card localization, rectification and text reading with ONNX models
"""

from .pipeline import IDCardPipeline
from .modules.card import CardLocator, LocatorConfig
from .modules.text import ReaderConfig, TextReader
from .models import ModelRegistry
from .types import (
    Detection,
    PipelineResult,
    PipelineStatus,
    RecognizedText,
    Rect,
    TextRegion,
)

__version__ = "0.1.0"
__all__ = [
    'IDCardPipeline',
    'CardLocator',
    'LocatorConfig',
    'TextReader',
    'ReaderConfig',
    'ModelRegistry',
    'Detection',
    'PipelineResult',
    'PipelineStatus',
    'RecognizedText',
    'Rect',
    'TextRegion',
]
