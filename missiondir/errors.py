"""Domain errors for the mission directory.

NotFound is deliberately absent: a missing record is a normal outcome and
comes back as ``None`` from the store and the service.
"""
from __future__ import annotations


class MissionDirectoryError(Exception):
    """Base class for every error raised by the core."""

    # Message safe to show to callers. Subclasses with backend detail override it.
    public_message = "internal error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)


class ValidationError(MissionDirectoryError):
    public_message = "invalid input"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        # validation messages describe caller input and are safe to return
        self.public_message = str(self)


class Forbidden(MissionDirectoryError):
    public_message = "forbidden"


class StoreError(MissionDirectoryError):
    public_message = "internal error"


class GenerationError(MissionDirectoryError):
    public_message = "internal error"
