"""Exceptions and warnings raised by the detection engine."""


class DetectorError(Exception):
    """Base class for all detection engine errors."""


class ConfigurationError(DetectorError, ValueError):
    """Raised when detection or spawn configuration is invalid at load time."""


class NoValidPositionError(DetectorError):
    """Raised in strict mode when placement sampling exhausts its attempts."""

    def __init__(self, attempts: int, last_position=None):
        self.attempts = attempts
        self.last_position = last_position
        super().__init__(f"No valid position found after {attempts} attempts")


class PlacementWarning(UserWarning):
    """Issued when permissive placement returns an unverified position."""
