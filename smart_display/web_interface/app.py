import time

from flask import Flask, request

from smart_display.app_state import AppState
from smart_display.cache.image_cache import ImageFetchCache
from smart_display.web_interface.blueprints.api import create_api_blueprint


def create_app(app_state: AppState, image_cache: ImageFetchCache, url_prefix: str = '/api') -> Flask:
    """Create the Flask app serving the display/config API."""
    app = Flask(__name__)
    app.json.sort_keys = False

    @app.before_request
    def _record_start_time():
        request.start_time = time.time()

    app.register_blueprint(create_api_blueprint(app_state, image_cache), url_prefix=url_prefix)
    return app
