"""Custom exceptions for the video-converter service."""


class TranscriptionError(Exception):
    """Raised when the speech recognition engine fails on an audio file."""

    def __init__(self, file_name: str, cause: Exception | None = None):
        self.file_name = file_name
        self.cause = cause
        super().__init__(f"Failed to transcribe audio file '{file_name}'")


class DependencyAcquisitionError(Exception):
    """Raised when a fetch attempt leaves no usable file at the target path."""

    def __init__(self, name: str, target: str, cause: Exception | None = None):
        self.name = name
        self.target = target
        self.cause = cause
        super().__init__(f"Failed to acquire dependency '{name}' at '{target}'")


class UnknownDependencyError(KeyError):
    """Raised when the bootstrapper is asked about an unregistered dependency."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown dependency '{name}'")
