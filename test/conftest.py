"""
Pytest configuration and fixtures for SmartDisplay tests.

Provides common fixtures for the config store, shared state, in-memory test
images and mocked HTTP sessions.
"""

import io
import json
import logging
import sys
import time
from pathlib import Path
from typing import Dict, Optional, Tuple
from unittest.mock import MagicMock, Mock

import pytest
import requests
from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from smart_display.app_state import AppState
from smart_display.config_manager import ConfigManager, FrameConfig


@pytest.fixture
def config_path(tmp_path):
    """Path to a (not yet existing) frame config file."""
    return tmp_path / "smart-display.json"


@pytest.fixture
def config_manager(config_path):
    """ConfigManager writing to a temp directory."""
    return ConfigManager(str(config_path))


@pytest.fixture
def write_config(config_path):
    """Write a raw config document to the temp config path."""
    def _write(data) -> Path:
        if isinstance(data, str):
            config_path.write_text(data)
        else:
            config_path.write_text(json.dumps(data))
        return config_path
    return _write


@pytest.fixture
def frame_config():
    """A config with two candidates and no current selection."""
    return FrameConfig(
        duration_secs=30.0,
        urls={"http://example.com/a.png", "http://example.com/b.png"},
        url=None,
    )


@pytest.fixture
def app_state(frame_config, config_manager):
    """AppState persisting to the temp config path."""
    return AppState(frame_config, config_manager)


@pytest.fixture
def mock_config_manager():
    """ConfigManager mock whose save() records the saved documents."""
    mock = MagicMock(spec=ConfigManager)
    mock.saved = []

    def mock_save(config: FrameConfig) -> None:
        mock.saved.append(config.to_dict())

    mock.save = Mock(side_effect=mock_save)
    mock.get_config_path.return_value = "smart-display.json"
    return mock


@pytest.fixture
def png_bytes():
    """Factory producing solid-color PNG bytes."""
    def _make(color: Tuple[int, ...] = (255, 0, 0), size: Tuple[int, int] = (64, 64),
              mode: str = 'RGB') -> bytes:
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format='PNG')
        return buf.getvalue()
    return _make


@pytest.fixture
def make_response():
    """Factory producing a mock streamed requests.Response."""
    def _make(content: bytes = b'', content_type: Optional[str] = 'image/png',
              status_code: int = 200, chunks: int = 1, chunk_delay: float = 0.0) -> Mock:
        response = Mock(spec=requests.Response)
        response.status_code = status_code
        response.content = content
        headers: Dict[str, str] = {}
        if content_type is not None:
            headers['Content-Type'] = content_type
        response.headers = headers
        if status_code >= 400:
            error = requests.exceptions.HTTPError(f"{status_code} Error", response=response)
            response.raise_for_status = Mock(side_effect=error)
        else:
            response.raise_for_status = Mock()

        def iter_content(chunk_size=1, decode_unicode=False):
            step = max(1, -(-len(content) // chunks))
            for start in range(0, len(content), step):
                if chunk_delay:
                    time.sleep(chunk_delay)
                yield content[start:start + step]

        response.iter_content = Mock(side_effect=iter_content)
        response.close = Mock()
        return response
    return _make


@pytest.fixture
def mock_session():
    """Mock requests.Session; set ``get.return_value`` or ``get.side_effect``."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)
    yield
    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)
    logging.getLogger('werkzeug').setLevel(logging.NOTSET)
