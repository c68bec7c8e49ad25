class RecorderError(Exception):
    """Base class for every failure surfaced to the CLI or the HTTP API."""
    http_status = 500


class BackendInitFailed(RecorderError):
    pass


class DeviceEnumerationFailed(RecorderError):
    pass


class InvalidDeviceIndex(RecorderError):
    http_status = 400


class NoDevicesSelected(RecorderError):
    http_status = 400

    def __init__(self, message="No devices selected"):
        super().__init__(message)


class AlreadyRecording(RecorderError):
    http_status = 400

    def __init__(self, message="Already recording"):
        super().__init__(message)


class NotRecording(RecorderError):
    http_status = 400

    def __init__(self, message="Not currently recording"):
        super().__init__(message)


class FileCreateFailed(RecorderError):
    pass


class StreamInitFailed(RecorderError):
    pass


class StreamStartFailed(RecorderError):
    pass
