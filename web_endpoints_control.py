from flask import Blueprint, jsonify, request, current_app
from threading import Thread
import os

import app_state

control_bp = Blueprint('control', __name__)

def _session():
    return current_app.config["RECORDING_SESSION"]

@control_bp.route('/api/devices')
def list_devices():
    devices = _session().list_devices()
    return jsonify([{"index": d.index, "name": d.name, "type": d.kind} for d in devices])

@control_bp.route('/api/status')
def status():
    state = _session().status()
    return jsonify({"isRecording": state["is_recording"], "devices": state["devices"]})

@control_bp.route('/api/start', methods=['POST'])
def start():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("deviceIndices", []), list):
        return jsonify({"status": "error", "message": "Invalid request body"}), 400
    channels = _session().start(data.get("deviceIndices", []))
    return jsonify({"status": "recording started", "files": [os.path.basename(c.path) for c in channels]})

@control_bp.route('/api/stop', methods=['POST'])
def stop():
    _session().stop()
    return jsonify({"status": "recording stopped"})

@control_bp.route('/shutdown', methods=['POST'])
def shutdown():
    def do_shutdown():
        if app_state.http_server: app_state.http_server.shutdown()
    Thread(target=do_shutdown).start()
    return 'Server is shutting down...'
