"""
Cache module for SmartDisplay.

Provides:
- ImageFetchCache: on-demand fetch/transcode cache for remote images
- CacheMetrics: Performance metrics tracking
"""

from smart_display.cache.cache_metrics import CacheMetrics
from smart_display.cache.image_cache import CachedImage, ImageFetchCache

__all__ = ['CacheMetrics', 'CachedImage', 'ImageFetchCache']
