import logging

from flask import Flask, jsonify

from errors import RecorderError
from web_endpoints_control import control_bp
from web_endpoints_ui import ui_bp

def create_app(session, recordings_dir):
    """Creates the Flask application bound to one recording session."""
    app = Flask(__name__)
    app.config["RECORDING_SESSION"] = session
    app.config["RECORDINGS_DIR"] = recordings_dir
    app.register_blueprint(control_bp)
    app.register_blueprint(ui_bp)

    @app.errorhandler(RecorderError)
    def handle_recorder_error(e):
        if e.http_status >= 500:
            logging.error(f"Request failed: {e}")
        return jsonify({"status": "error", "message": str(e)}), e.http_status

    return app
