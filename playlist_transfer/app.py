import json

from flask import Flask, request, render_template, jsonify, current_app
from werkzeug.exceptions import HTTPException

from playlist_transfer.config import DEFAULT_PLAYLIST_NAME


class SubmissionError(ValueError):
    """Raised when a submission body cannot be decoded into a JSON object."""


def _optional_str(data, key):
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise SubmissionError(f"'{key}' must be a string")
    return value


def parse_submission(body):
    """
    Decodes a raw /submit body (UTF-8 JSON object).
    Returns a dict with 'type', 'url', 'content' and 'name' keys; 'name' is
    already defaulted. Raises SubmissionError on undecodable input.
    """
    try:
        data = json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SubmissionError(str(e)) from e

    if not isinstance(data, dict):
        raise SubmissionError("Expected a JSON object")

    return {
        'type': _optional_str(data, 'type'),
        'url': _optional_str(data, 'url'),
        'content': _optional_str(data, 'content'),
        'name': _optional_str(data, 'name') or DEFAULT_PLAYLIST_NAME,
    }


def _reply(success, message, status=200):
    return jsonify({'success': success, 'message': message}), status


def _dispatch(callback, value, name):
    # The payload is already accepted; a failing callback must not change the response
    if callback is None:
        current_app.logger.warning("Submission received but no callback is registered")
        return
    try:
        callback(value, name)
    except Exception as e:
        current_app.logger.exception(f"Playlist callback failed for '{name}': {e}")


def create_app(transfer_server):
    """
    Builds the Flask app served by a TransferServer.
    Callbacks are read from transfer_server on every request, so the host may
    reassign them before start().
    """
    app = Flask(__name__)
    app.transfer_server = transfer_server

    # --- CORS ---
    @app.before_request
    def answer_preflight():
        if request.method == 'OPTIONS':
            return '', 200

    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        return response

    # --- Flask Routes ---
    @app.route('/', methods=['GET'])
    def index():
        return render_template('upload.html')

    @app.route('/submit', methods=['POST'])
    def submit():
        # Snapshot both slots so a reassignment cannot switch callbacks mid-request
        on_url_received = app.transfer_server.on_url_received
        on_content_received = app.transfer_server.on_content_received

        try:
            submission = parse_submission(request.get_data())
        except SubmissionError as e:
            app.logger.info(f"Rejected submission: {e}")
            return _reply(False, f"Invalid request: {e}", 400)

        if not app.transfer_server.is_running:
            app.logger.warning("Submission arrived after the server was stopped, ignored")
            return _reply(False, "Server stopped", 503)

        name = submission['name']
        if submission['type'] == 'url':
            url = submission['url']
            if not url:
                return _reply(False, "URL is required", 400)
            app.logger.info(f"Received playlist URL '{name}': {url}")
            _dispatch(on_url_received, url, name)
            return _reply(True, "URL received")

        if submission['type'] == 'content':
            content = submission['content']
            if not content:
                return _reply(False, "Content is required", 400)
            app.logger.info(f"Received playlist content '{name}' ({len(content)} characters)")
            _dispatch(on_content_received, content, name)
            return _reply(True, "Content received")

        return _reply(False, "Invalid type", 400)

    # --- Errors ---
    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        return "Not Found", 404

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception(f"An internal error occurred while handling {request.method} {request.path}: {e}")
        return f"Error: {e}", 500

    return app
