from .reader import ReaderConfig, TextReader

__all__ = ["ReaderConfig", "TextReader"]
