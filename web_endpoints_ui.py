import os
import logging

from flask import Blueprint, jsonify, send_file, Response, current_app
from werkzeug.security import safe_join

import app_state
from utils import list_recordings

ui_bp = Blueprint('ui', __name__)

@ui_bp.route('/api/recordings')
def recordings():
    recordings_dir = current_app.config["RECORDINGS_DIR"]
    if not os.path.isdir(recordings_dir):
        return jsonify([])
    return jsonify(list_recordings(recordings_dir))

@ui_bp.route('/recordings/<path:filename>')
def download_recording(filename):
    recordings_dir = current_app.config["RECORDINGS_DIR"]
    file_path = safe_join(recordings_dir, filename)
    if file_path is None or os.path.dirname(os.path.abspath(file_path)) != os.path.abspath(recordings_dir):
        logging.warning(f"Rejected access outside the recordings directory: '{filename}'")
        return jsonify({"status": "error", "message": "Invalid filename"}), 400
    if not os.path.isfile(file_path):
        return jsonify({"status": "error", "message": "Recording not found"}), 404
    return send_file(os.path.abspath(file_path), mimetype='audio/wav')

@ui_bp.route('/favicon.ico')
def favicon():
    app_state.generate_favicons()
    recording = current_app.config["RECORDING_SESSION"].status()["is_recording"]
    icon = app_state.FAVICON_REC_BYTES if recording else app_state.FAVICON_STOP_BYTES
    return Response(icon, mimetype='image/vnd.microsoft.icon')
