"""
Tests for AppState.

Tests mutations, persistence on every mutation, random rotation and the
read-only projections.
"""

import json
import math
import random
import threading
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from smart_display.app_state import AppState
from smart_display.config_manager import FrameConfig
from smart_display.exceptions import ConfigSaveError, UnknownUrlError
from smart_display.sensor_service import SensorReadings

URL_A = "http://example.com/a.png"
URL_B = "http://example.com/b.png"
URL_C = "http://example.com/c.png"


class TestAppStateUrls:
    """Test adding and removing candidate URLs."""

    def test_add_url_persists(self, app_state, config_path):
        assert app_state.add_url(URL_C) is True
        data = json.loads(config_path.read_text())
        assert data['urls'] == [URL_A, URL_B, URL_C]

    def test_add_url_is_idempotent(self, app_state):
        app_state.add_url(URL_C)
        assert app_state.add_url(URL_C) is False
        assert app_state.index_snapshot().image_urls == [URL_A, URL_B, URL_C]

    def test_remove_url(self, app_state, config_path):
        assert app_state.remove_url(URL_A) is True
        assert app_state.index_snapshot().image_urls == [URL_B]
        assert json.loads(config_path.read_text())['urls'] == [URL_B]

    def test_remove_absent_url_still_saves(self, mock_config_manager, frame_config):
        state = AppState(frame_config, mock_config_manager)
        assert state.remove_url(URL_C) is False
        assert mock_config_manager.save.call_count == 1

    def test_remove_current_url_keeps_selection(self, app_state):
        app_state.modify(url=URL_A)
        app_state.remove_url(URL_A)
        snapshot = app_state.index_snapshot()
        assert snapshot.image_url == URL_A
        assert URL_A not in snapshot.image_urls


class TestAppStateModify:
    """Test partial updates."""

    def test_modify_url(self, app_state, config_path):
        app_state.modify(url=URL_B)
        assert app_state.polling_snapshot().image_url == URL_B
        assert json.loads(config_path.read_text())['url'] == URL_B

    def test_modify_duration_only(self, app_state):
        app_state.modify(url=URL_A)
        app_state.modify(duration_secs=5)
        config = app_state.config_copy()
        assert config.duration_secs == 5.0
        assert config.url == URL_A

    def test_modify_nothing_still_saves(self, mock_config_manager, frame_config):
        state = AppState(frame_config, mock_config_manager)
        state.modify()
        assert mock_config_manager.save.call_count == 1

    def test_modify_unknown_url(self, app_state):
        with pytest.raises(UnknownUrlError) as exc_info:
            app_state.modify(url=URL_C)
        assert exc_info.value.url == URL_C
        assert app_state.config_copy().url is None

    def test_modify_removed_url_until_re_added(self, app_state):
        app_state.modify(url=URL_A)
        app_state.remove_url(URL_A)

        with pytest.raises(UnknownUrlError):
            app_state.modify(url=URL_A)
        assert app_state.config_copy().url == URL_A

        app_state.add_url(URL_A)
        app_state.modify(url=URL_A)
        assert app_state.config_copy().url == URL_A

    def test_modify_huge_duration_allowed(self, app_state):
        app_state.modify(duration_secs=1e10)
        assert app_state.config_copy().duration_secs == 1e10

    @pytest.mark.parametrize('duration', [-1, math.nan, math.inf])
    def test_modify_invalid_duration(self, app_state, duration):
        with pytest.raises(ValueError):
            app_state.modify(duration_secs=duration)
        assert app_state.config_copy().duration_secs == 30.0

    def test_modify_zero_duration_allowed(self, app_state):
        app_state.modify(duration_secs=0)
        assert app_state.config_copy().duration_secs == 0.0

    def test_save_failure_keeps_in_memory_change(self, frame_config, mock_config_manager):
        mock_config_manager.save = Mock(side_effect=ConfigSaveError("disk full"))
        state = AppState(frame_config, mock_config_manager)

        with pytest.raises(ConfigSaveError):
            state.modify(url=URL_A)

        assert state.polling_snapshot().image_url == URL_A

    def test_lock_released_after_save_failure(self, frame_config, mock_config_manager):
        mock_config_manager.save = Mock(side_effect=ConfigSaveError("disk full"))
        state = AppState(frame_config, mock_config_manager)

        with pytest.raises(ConfigSaveError):
            state.add_url(URL_C)

        # Would deadlock if the lock leaked
        assert URL_C in state.index_snapshot().image_urls

    def test_initial_config_is_copied(self, frame_config, mock_config_manager):
        state = AppState(frame_config, mock_config_manager)
        frame_config.urls.add(URL_C)
        assert URL_C not in state.index_snapshot().image_urls


class TestAppStateRotate:
    """Test random re-selection."""

    def test_rotate_picks_a_candidate(self, app_state):
        duration = app_state.rotate(random.Random(1))
        assert duration == 30.0
        assert app_state.config_copy().url in (URL_A, URL_B)

    def test_rotate_empty_set_is_noop(self, mock_config_manager):
        state = AppState(FrameConfig(duration_secs=7.0), mock_config_manager)
        assert state.rotate(random.Random(0)) == 7.0
        assert state.config_copy().url is None

    def test_rotate_does_not_persist(self, mock_config_manager, frame_config):
        state = AppState(frame_config, mock_config_manager)
        state.rotate(random.Random(0))
        mock_config_manager.save.assert_not_called()

    def test_rotate_visits_every_candidate(self, app_state):
        rng = random.Random(1234)
        seen = set()
        for _ in range(50):
            app_state.rotate(rng)
            seen.add(app_state.config_copy().url)
        assert seen == {URL_A, URL_B}


class TestAppStateSnapshots:
    """Test the polling and index projections."""

    def test_polling_snapshot_without_readings(self, app_state):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        data = app_state.polling_snapshot(now=now).to_dict()
        assert data == {'dateTime': '2024-01-02T03:04:05+00:00', 'imageUrl': None, 'extra': None}

    def test_polling_snapshot_with_readings(self, app_state):
        app_state.update_readings(SensorReadings(temperature=21.5, humidity=40.0))
        data = app_state.polling_snapshot().to_dict()
        assert data['extra'] == {'temperature': 21.5, 'humidity': 40.0}
        assert app_state.readings().temperature == 21.5

    def test_polling_snapshot_is_timezone_aware(self, app_state):
        assert app_state.polling_snapshot().date_time.tzinfo is not None

    def test_index_snapshot(self, app_state):
        app_state.modify(url=URL_B, duration_secs=12)
        assert app_state.index_snapshot().to_dict() == {
            'durationSecs': 12.0,
            'imageUrls': [URL_A, URL_B],
            'imageUrl': URL_B,
        }

    def test_concurrent_adds(self, mock_config_manager):
        state = AppState(FrameConfig(), mock_config_manager)
        urls = [f"http://example.com/{i}.png" for i in range(20)]
        threads = [threading.Thread(target=state.add_url, args=(u,)) for u in urls]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert state.index_snapshot().image_urls == sorted(urls)
        assert mock_config_manager.save.call_count == 20


class TestRotationScenario:
    """Rotate over two candidates, then remove the displayed one."""

    def test_remove_displayed_url_after_rotation(self, config_manager, write_config):
        write_config({'durationSecs': 1, 'urls': ['a', 'b'], 'url': ''})
        state = AppState(config_manager.load(), config_manager)

        state.rotate(random.Random(5))
        assert state.config_copy().url in ('a', 'b')

        state.modify(url='b')
        state.remove_url('b')

        config = state.config_copy()
        assert config.url == 'b'
        assert config.urls == {'a'}
        assert config_manager.load().to_dict() == {'durationSecs': 1.0, 'urls': ['a'], 'url': 'b'}
