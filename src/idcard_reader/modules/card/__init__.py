from .locator import CardLocator, LocatorConfig

__all__ = ["CardLocator", "LocatorConfig"]
