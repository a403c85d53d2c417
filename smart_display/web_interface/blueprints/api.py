"""
HTTP API for the display client and the configuration UI.

Routes (mounted under /api):
- GET  /polling          live snapshot polled by the display
- GET  /image-index      full configuration listing
- POST /image-modify     partial update of current URL / rotation duration
- POST /image-create     add a candidate URL
- POST /image-delete     remove a candidate URL
- GET  /image-get        cached, transcoded image bytes for ?imageUrl=
- GET  /cache/stats      image cache metrics
"""

from flask import Blueprint, Response, jsonify, request

from smart_display.app_state import AppState
from smart_display.cache.image_cache import ImageFetchCache
from smart_display.web_interface.api_helpers import (
    error_response,
    success_response,
    validate_request_json,
)
from smart_display.web_interface.error_handler import handle_errors
from smart_display.web_interface.errors import ErrorCode
from smart_display.web_interface.validators import (
    IMAGE_CREATE_SCHEMA,
    IMAGE_DELETE_SCHEMA,
    IMAGE_MODIFY_SCHEMA,
    validate_image_url,
)


COLOR_HEADER = 'X-Image-Color'
IMAGE_MAX_AGE_SECS = 24 * 60 * 60


def create_api_blueprint(app_state: AppState, image_cache: ImageFetchCache) -> Blueprint:
    """Build the API blueprint bound to one AppState and one image cache."""
    api = Blueprint('api', __name__)

    @api.route('/polling', methods=['GET'])
    @handle_errors()
    def polling():
        """Live snapshot: timestamp, current image URL, optional sensor readings"""
        return jsonify(app_state.polling_snapshot().to_dict())

    @api.route('/image-index', methods=['GET'])
    @handle_errors()
    def image_index():
        return jsonify(app_state.index_snapshot().to_dict())

    @api.route('/image-modify', methods=['POST'])
    @handle_errors()
    def image_modify():
        data, error = validate_request_json(IMAGE_MODIFY_SCHEMA)
        if error:
            return error

        app_state.modify(
            url=data.get('imageUrl'),
            duration_secs=data.get('durationSecs'),
        )
        return success_response(
            data=app_state.index_snapshot().to_dict(),
            message="Configuration updated"
        )

    @api.route('/image-create', methods=['POST'])
    @handle_errors()
    def image_create():
        data, error = validate_request_json(IMAGE_CREATE_SCHEMA)
        if error:
            return error

        url = data['imageUrl'].strip()
        is_valid, reason = validate_image_url(url)
        if not is_valid:
            return error_response(ErrorCode.INVALID_INPUT, reason,
                                  context={'imageUrl': url}, status_code=400)

        added = app_state.add_url(url)
        return success_response(
            data={'added': added},
            message="Image added" if added else "Image already present"
        )

    @api.route('/image-delete', methods=['POST'])
    @handle_errors()
    def image_delete():
        data, error = validate_request_json(IMAGE_DELETE_SCHEMA)
        if error:
            return error

        removed = app_state.remove_url(data['imageUrl'].strip())
        return success_response(
            data={'removed': removed},
            message="Image removed" if removed else "Image not present"
        )

    @api.route('/image-get', methods=['GET'])
    @handle_errors()
    def image_get():
        url = (request.args.get('imageUrl') or '').strip()
        if not url:
            return error_response(ErrorCode.INVALID_INPUT,
                                  "Missing required parameter: imageUrl", status_code=400)

        is_valid, reason = validate_image_url(url)
        if not is_valid:
            return error_response(ErrorCode.INVALID_INPUT, reason,
                                  context={'imageUrl': url}, status_code=400)

        entry = image_cache.fetch_or_get(url)
        response = Response(entry.data, mimetype=entry.content_type)
        response.headers[COLOR_HEADER] = entry.color_header()
        response.headers['Cache-Control'] = f'public, max-age={IMAGE_MAX_AGE_SECS}'
        return response

    @api.route('/cache/stats', methods=['GET'])
    @handle_errors()
    def cache_stats():
        return success_response(data=image_cache.get_stats())

    return api
