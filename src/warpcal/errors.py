from __future__ import annotations


class CalibrationError(Exception):
    """Base class for every failure that aborts a calibration run."""


class ConfigurationError(CalibrationError, ValueError):
    """Malformed or missing configuration input (resolution, files, documents)."""


class CaptureError(CalibrationError):
    """Photo acquisition or pattern detection failed."""


class GeometryError(CalibrationError):
    pass


class NoIntersectionError(GeometryError):
    """A camera ray does not hit the configured surface."""


class RemoteControlError(CalibrationError):
    pass
