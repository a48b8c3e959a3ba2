"""Image proxy: strategy chain, validation and cache for Drive images."""

from sticker_drive.images.cache import ImageCache
from sticker_drive.images.proxy import ImageProxy, build_default_strategies, parse_size
from sticker_drive.images.strategies import ResolutionStrategy, ResolvedImage

__all__ = [
    "ImageCache",
    "ImageProxy",
    "ResolutionStrategy",
    "ResolvedImage",
    "build_default_strategies",
    "parse_size",
]
