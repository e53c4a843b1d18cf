"""Custom exceptions for the FaceVibe backend"""


class FaceVibeError(Exception):
    """Base exception for FaceVibe errors"""
    pass


class MalformedFrameError(FaceVibeError):
    """Raised when a landmark frame is partial or has invalid coordinates"""
    pass


class UnknownExerciseError(FaceVibeError):
    """Raised when an exercise name is not in the catalogue"""
    pass


class UnknownGameError(FaceVibeError):
    """Raised when a game id is not in the catalogue"""
    pass


class PersistenceError(FaceVibeError):
    """Raised when the key/value store cannot be read or written"""
    pass


class DetectorUnavailableError(FaceVibeError):
    """Raised when the landmark detector cannot be started"""
    pass


class InvalidImageError(FaceVibeError):
    """Raised when image is invalid or cannot be decoded"""
    pass
