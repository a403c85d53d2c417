"""
Image Fetch Cache

Fetches remote images on first request, validates and transcodes them, and
keeps the result in memory for the life of the process.

Key Features:
- At most one upstream fetch per URL, even under concurrent first requests
- Content-Type validation (image/* only, no byte sniffing)
- Optional fixed-size bicubic resize
- Mean RGB "representative color" computed from the decoded pixels
- Re-encode to JPEG or WebP
- No entry is created when any step fails

Entries never expire and are never refreshed. There is no size bound.
"""

import time
import threading
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

import requests
from PIL import Image

from smart_display.cache.cache_metrics import CacheMetrics
from smart_display.exceptions import (
    ContentTypeError,
    DecodeError,
    EncodeError,
    FetchError,
    ImageCacheError,
)
from smart_display.image_utils import (
    OUTPUT_FORMATS,
    decode_image,
    encode_image,
    representative_color,
    resize_to_target,
)
from smart_display.logging_config import get_logger, log_warning

LOCK_MODES = ('global', 'per_key')

DOWNLOAD_CHUNK_SIZE = 64 * 1024

DEFAULT_HEADERS = {
    'User-Agent': 'SmartDisplay/1.0',
    'Accept': 'image/*',
}


@dataclass(frozen=True)
class CachedImage:
    """Immutable cache entry."""

    data: bytes
    color: Tuple[int, int, int]
    content_type: str

    def color_header(self) -> str:
        return ",".join(str(c) for c in self.color)

    def to_metadata(self) -> Dict[str, Any]:
        return {
            'color': list(self.color),
            'contentType': self.content_type,
            'size': len(self.data),
        }


class ImageFetchCache:
    """
    In-memory URL -> transcoded image cache.

    In the default ``global`` lock mode a single lock is held across the
    whole lookup/fetch/insert sequence, so concurrent first requests for the
    same URL result in one fetch, at the cost of serializing fetches for
    different URLs. ``per_key`` mode keeps the same-URL guarantee with one
    single-flight lock per URL, letting distinct URLs fetch in parallel.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        target_size: Optional[Tuple[int, int]] = None,
        output_format: str = 'JPEG',
        quality: int = 85,
        lock_mode: str = 'global'
    ) -> None:
        """
        Initialize the image cache.

        Args:
            session: HTTP session (a new requests.Session if None)
            timeout: Upstream fetch timeout in seconds; bounds how long the
                cache lock can be held by one fetch
            target_size: Optional (width, height) to resize every image to
            output_format: 'JPEG' or 'WEBP'
            quality: Encoder quality
            lock_mode: 'global' or 'per_key'
        """
        output_format = output_format.upper()
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        if lock_mode not in LOCK_MODES:
            raise ValueError(f"Unsupported lock mode: {lock_mode}")

        self.logger: logging.Logger = get_logger(__name__)
        self.timeout = timeout
        self.target_size = target_size
        self.output_format = output_format
        self.quality = quality
        self.lock_mode = lock_mode

        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
        self.session = session

        self._entries: Dict[str, CachedImage] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}
        self._metrics = CacheMetrics(logger=self.logger)

    def fetch_or_get(self, url: str) -> CachedImage:
        """
        Return the cached image for url, fetching and transcoding on first use.

        Raises:
            FetchError: transport failure, timeout or non-success status
            ContentTypeError: response is not image/*
            DecodeError: body is not a decodable image
            EncodeError: re-encoding failed
        """
        if self.lock_mode == 'per_key':
            return self._fetch_or_get_per_key(url)

        with self._lock:
            entry = self._entries.get(url)
            if entry is not None:
                self._metrics.record_hit()
                return entry
            self._metrics.record_miss()
            entry = self._load(url)
            self._entries[url] = entry
            return entry

    def _fetch_or_get_per_key(self, url: str) -> CachedImage:
        with self._lock:
            entry = self._entries.get(url)
            if entry is not None:
                self._metrics.record_hit()
                return entry
            key_lock = self._key_locks.setdefault(url, threading.Lock())

        with key_lock:
            # Another caller may have filled the entry while we waited
            with self._lock:
                entry = self._entries.get(url)
            if entry is not None:
                self._metrics.record_hit()
                return entry

            self._metrics.record_miss()
            try:
                entry = self._load(url)
                with self._lock:
                    self._entries[url] = entry
                return entry
            finally:
                with self._lock:
                    if self._key_locks.get(url) is key_lock:
                        del self._key_locks[url]

    def _load(self, url: str) -> CachedImage:
        start_time = time.time()
        try:
            entry = self._fetch_and_transcode(url)
        except ImageCacheError as e:
            self._metrics.record_failure(type(e).__name__)
            log_warning(self.logger, f"Image fetch failed: {e.message}",
                        context=e.context, component='image_cache')
            raise

        fetch_time = time.time() - start_time
        self._metrics.record_fetch_time(fetch_time, len(entry.data))
        self.logger.info(
            f"Cached {url} ({len(entry.data)} bytes, color {entry.color}) in {fetch_time:.2f}s"
        )
        return entry

    def _download(self, url: str) -> bytes:
        """
        Fetch url and return the body of an image/* response.

        The timeout bounds the whole download, not just each socket read,
        so a server trickling its body cannot hold the cache lock past it.
        """
        deadline = time.monotonic() + self.timeout
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Timed out fetching image: {e}", cache_key=url, timed_out=True) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Error fetching image: {e}", cache_key=url) from e

        try:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None
                raise FetchError(f"Upstream returned an error: {e}", cache_key=url,
                                 status_code=status_code) from e

            # Checked before the body is read
            content_type = response.headers.get('Content-Type', '')
            if not content_type.strip().lower().startswith('image/'):
                raise ContentTypeError(
                    f"Expected an image content type, got '{content_type}'",
                    cache_key=url,
                    content_type=content_type
                )

            chunks = []
            try:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise FetchError(
                            f"Timed out fetching image: download exceeded {self.timeout}s",
                            cache_key=url,
                            timed_out=True
                        )
            except requests.exceptions.Timeout as e:
                raise FetchError(f"Timed out fetching image: {e}", cache_key=url, timed_out=True) from e
            except requests.exceptions.RequestException as e:
                raise FetchError(f"Error reading image body: {e}", cache_key=url) from e
            return b''.join(chunks)
        finally:
            response.close()

    def _fetch_and_transcode(self, url: str) -> CachedImage:
        body = self._download(url)

        try:
            img = decode_image(body)
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Could not decode image: {e}", cache_key=url) from e

        if self.target_size:
            img = resize_to_target(img, *self.target_size)
        color = representative_color(img)

        try:
            data = encode_image(img, self.output_format, self.quality)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Could not encode image as {self.output_format}: {e}", cache_key=url) from e

        return CachedImage(
            data=data,
            color=color,
            content_type=OUTPUT_FORMATS[self.output_format],
        )

    def get(self, url: str) -> Optional[CachedImage]:
        """Return the entry for url without fetching."""
        with self._lock:
            return self._entries.get(url)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        stats = self._metrics.get_metrics()
        with self._lock:
            stats['entries'] = len(self._entries)
        stats['lock_mode'] = self.lock_mode
        stats['output_format'] = self.output_format
        return stats

    def close(self) -> None:
        """Close the HTTP session if this cache created it."""
        self._metrics.log_metrics()
        if self._owns_session:
            self.session.close()
