import sys
import logging
import argparse
from threading import Thread

from werkzeug.serving import make_server

import app_state
from app_state import settings
from config_manager import load_settings, get_recordings_dir, DEFAULT_SETTINGS
from errors import RecorderError
from recorder import RecordingSession
from utils import setup_logging
from web_app import create_app
from cli import run_cli

flask_thread = None

# --- Server Lifecycle Management ---
def run_flask(app, host, port):
    try:
        app_state.http_server = make_server(host, port, app, threaded=True)
    except OSError as e:
        logging.error(f"Failed to start HTTP server on {host}:{port}: {e}")
        return
    logging.info(f"Control server listening on http://{host}:{port}")
    app_state.http_server.serve_forever()

def start_server(app):
    global flask_thread
    host = '0.0.0.0' if settings.get("lan_accessible") else '127.0.0.1'
    port = settings.get("port", DEFAULT_SETTINGS["port"])
    flask_thread = Thread(target=run_flask, args=(app, host, port), daemon=True)
    flask_thread.start()

def wait_for_server():
    """Blocks until the server thread ends (POST /shutdown) or Ctrl-C is pressed."""
    try:
        while flask_thread.is_alive():
            flask_thread.join(timeout=0.5)
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down...")
        if app_state.http_server:
            app_state.http_server.shutdown()

def finalize_session(session):
    """Stops an active recording so every file ends with a valid header."""
    if session.status()["is_recording"]:
        logging.info("Stopping active recording before exit...")
        session.stop()

def parse_args(argv):
    parser = argparse.ArgumentParser(description="Record several audio input devices to separate WAV files.")
    parser.add_argument('--cli', action='store_true', help="interactive terminal recording instead of the HTTP server")
    parser.add_argument('--port', type=int, help="HTTP port of the control server")
    parser.add_argument('--recordings-dir', help="directory for the WAV files")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    load_settings()
    setup_logging(settings.get("log_file"))
    # Requests are logged only on warnings and errors.
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    if args.port is not None:
        settings["port"] = args.port
    if args.recordings_dir:
        settings["recordings_dir"] = args.recordings_dir
    recordings_dir = get_recordings_dir()

    # Importing sounddevice loads the PortAudio library, which may be missing on the host.
    try:
        from audio_backend import SoundDeviceBackend
        backend = SoundDeviceBackend()
    except OSError as e:
        logging.error(f"Failed to initialize audio context: {e}")
        return 1
    except RecorderError as e:
        logging.error(str(e))
        return 1

    session = RecordingSession(backend, recordings_dir,
                               queue_size=settings.get("queue_size", DEFAULT_SETTINGS["queue_size"]))
    try:
        if args.cli:
            return run_cli(session)
        app = create_app(session, recordings_dir)
        start_server(app)
        wait_for_server()
        return 0
    finally:
        finalize_session(session)
        backend.close()

if __name__ == '__main__':
    sys.exit(main())
