"""
SmartDisplay Service

Wires the components of one display server process together: the persisted
frame configuration, the shared state, the rotation scheduler, the optional
sensor ingest loop, the image cache and the Flask app serving them.
"""

import logging
from typing import Optional

from flask import Flask

from smart_display.app_state import AppState
from smart_display.cache.image_cache import ImageFetchCache
from smart_display.config_manager import ConfigManager
from smart_display.logging_config import get_logger, log_info
from smart_display.rotation_scheduler import RotationScheduler
from smart_display.sensor_service import SensorIngestService
from smart_display.settings import ServiceSettings
from smart_display.snapshots import resolve_timezone
from smart_display.web_interface.app import create_app

SHUTDOWN_TIMEOUT_SECS = 5.0


class SmartDisplayService:
    """Owns every long-lived component and their start/stop order."""

    def __init__(self, settings: ServiceSettings, image_cache: Optional[ImageFetchCache] = None):
        self.settings = settings
        self.logger: logging.Logger = get_logger(__name__)

        self.config_manager = ConfigManager(settings.config_path)
        config = self.config_manager.load_or_default()
        log_info(
            self.logger, "Frame config ready",
            context={'config_path': self.config_manager.get_config_path(),
                     'urls': len(config.urls), 'duration_secs': config.duration_secs},
            component='service'
        )

        self.app_state = AppState(config, self.config_manager,
                                  timezone=resolve_timezone(settings.timezone))
        self.scheduler = RotationScheduler(self.app_state)

        self.sensor_service: Optional[SensorIngestService] = None
        if settings.sensor_enabled:
            self.sensor_service = SensorIngestService(
                self.app_state, settings.sensor_path, settings.sensor_interval_secs
            )

        self.image_cache = image_cache or ImageFetchCache(
            timeout=settings.fetch_timeout_secs,
            target_size=settings.target_size,
            output_format=settings.output_format,
            quality=settings.output_quality,
            lock_mode=settings.cache_lock_mode,
        )
        self.app: Flask = create_app(self.app_state, self.image_cache)

    def start(self) -> None:
        """Start background loops."""
        self.scheduler.start()
        if self.sensor_service is not None:
            self.sensor_service.start()
        else:
            self.logger.info("Sensor ingest disabled")

    def stop(self) -> None:
        """Stop background loops and release the image cache."""
        self.scheduler.stop(timeout=SHUTDOWN_TIMEOUT_SECS)
        if self.sensor_service is not None:
            self.sensor_service.stop(timeout=SHUTDOWN_TIMEOUT_SECS)
        self.image_cache.close()
        self.logger.info("SmartDisplay service stopped")

    def serve(self) -> None:
        """Start background loops and block serving HTTP until interrupted."""
        self.start()
        self.logger.info(f"Serving on {self.settings.host}:{self.settings.port}")
        try:
            self.app.run(
                host=self.settings.host,
                port=self.settings.port,
                debug=False,
                threaded=True,
                use_reloader=False,
            )
        finally:
            self.stop()
