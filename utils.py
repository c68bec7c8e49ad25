import os
import re
import sys
import glob
import logging
from datetime import datetime

from wav_header import read_header, HEADER_SIZE

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9-]')


def setup_logging(log_file=None):
    """Configures logging to a file (errors only) and to the console."""
    from app_state import get_application_path
    if log_file is None:
        log_file = 'record_server.log'
    if not os.path.isabs(log_file):
        log_file = os.path.join(get_application_path(), log_file)
    logger = logging.getLogger()
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.ERROR)
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def sanitize_filename(name):
    """Replaces every character outside [A-Za-z0-9-] with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub('_', name)


def build_output_path(output_dir, device_name, started_at):
    """Returns a free '<timestamp>_<device>.wav' path inside output_dir."""
    base = f"{started_at.strftime('%Y-%m-%d_%H-%M-%S')}_{sanitize_filename(device_name)}"
    path = os.path.join(output_dir, base + '.wav')
    suffix = 2
    while os.path.exists(path):
        path = os.path.join(output_dir, f"{base}_{suffix}.wav")
        suffix += 1
    return path


def get_recording_duration(path):
    try:
        header = read_header(path)
    except (OSError, ValueError):
        return None
    byte_rate = header.sample_rate * header.channels * header.bits_per_sample // 8
    if not byte_rate:
        return None
    return header.payload_size / byte_rate


def list_recordings(recordings_dir):
    """Collects name, size, modification time and duration of every .wav in the directory."""
    recordings = []
    for path in sorted(glob.glob(os.path.join(recordings_dir, '*.wav'))):
        try:
            stat = os.stat(path)
        except OSError:
            continue
        recordings.append({
            "name": os.path.basename(path),
            "size": stat.st_size,
            "time": datetime.fromtimestamp(stat.st_mtime).strftime('%Y-%m-%d %H:%M:%S'),
            "duration": get_recording_duration(path) if stat.st_size >= HEADER_SIZE else None,
        })
    return recordings
