"""
Cache Metrics

Tracks image cache performance: hit/miss counts, failed fetches by error
type, and upstream fetch times.
"""

import threading
import logging
from collections import Counter
from typing import Dict, Any, Optional


class CacheMetrics:
    """Tracks cache performance metrics."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize cache metrics tracker.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._metrics: Dict[str, Any] = {
            'hits': 0,
            'misses': 0,
            'failures': 0,
            'total_fetch_time': 0.0,
            'fetch_count': 0,
            'bytes_cached': 0,
        }
        self._failures_by_type: Counter = Counter()

    def record_hit(self) -> None:
        with self._lock:
            self._metrics['hits'] += 1

    def record_miss(self) -> None:
        with self._lock:
            self._metrics['misses'] += 1

    def record_failure(self, error_type: str) -> None:
        """
        Record a fetch that did not produce a cache entry.

        Args:
            error_type: Exception class name (FetchError, DecodeError, ...)
        """
        with self._lock:
            self._metrics['failures'] += 1
            self._failures_by_type[error_type] += 1

    def record_fetch_time(self, duration: float, size_bytes: int = 0) -> None:
        """
        Record a successful fetch-and-transcode.

        Args:
            duration: Duration in seconds
            size_bytes: Size of the encoded payload stored in the cache
        """
        with self._lock:
            self._metrics['total_fetch_time'] += duration
            self._metrics['fetch_count'] += 1
            self._metrics['bytes_cached'] += size_bytes

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get current cache performance metrics.

        Returns:
            Dictionary with cache metrics
        """
        with self._lock:
            hits = self._metrics['hits']
            misses = self._metrics['misses']
            total_requests = hits + misses
            fetch_count = self._metrics['fetch_count']
            avg_fetch_time = (self._metrics['total_fetch_time'] / fetch_count) if fetch_count > 0 else 0.0

            return {
                'total_requests': total_requests,
                'hits': hits,
                'misses': misses,
                'cache_hit_rate': hits / total_requests if total_requests > 0 else 0.0,
                'failures': self._metrics['failures'],
                'failures_by_type': dict(self._failures_by_type),
                'average_fetch_time': avg_fetch_time,
                'total_fetch_time': self._metrics['total_fetch_time'],
                'fetch_count': fetch_count,
                'bytes_cached': self._metrics['bytes_cached'],
            }

    def log_metrics(self) -> None:
        """Log current cache performance metrics."""
        metrics = self.get_metrics()
        self.logger.info("Image Cache Performance - Hit Rate: %.2f%%, Fetches: %d, "
                         "Failures: %d, Avg Fetch Time: %.2fs",
                         metrics['cache_hit_rate'] * 100,
                         metrics['fetch_count'],
                         metrics['failures'],
                         metrics['average_fetch_time'])
