class ScaleTrackError(Exception):
    """Base exception for ScaleTrack."""


class ConfigurationError(ScaleTrackError):
    """Raised when configuration is invalid or incomplete."""


class InvalidParameterError(ScaleTrackError):
    """Raised when trend settings fall outside their valid ranges."""


class AuthenticationError(ScaleTrackError):
    """Raised for bad credentials or an invalid/expired session token."""


class RegistrationError(ScaleTrackError):
    """Raised when a new account cannot be created."""


class NotFoundError(ScaleTrackError):
    """Raised when a requested record does not exist."""


class ImageAnalysisError(ScaleTrackError):
    """Raised when a scale photo cannot be read."""
