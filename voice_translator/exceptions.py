"""Custom exceptions for the voice translator."""

from __future__ import annotations

from typing import Optional


class VoiceTranslatorError(RuntimeError):
    """Base class for every failure raised by capture, the services, or synthesis."""


class PermissionDenied(VoiceTranslatorError):
    """Raised when the operating system refuses access to the microphone."""


class DeviceUnavailable(VoiceTranslatorError):
    """Raised when no audio capture device exists."""


class AuthError(VoiceTranslatorError):
    """Raised when the credential is missing or rejected by a service."""


class NetworkError(VoiceTranslatorError):
    """Raised when a service cannot be reached."""


class ServiceError(VoiceTranslatorError):
    """Raised when a service responds with a non-success status or an unreadable body."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NoTextReturned(VoiceTranslatorError):
    """Raised when a service succeeds but produces no text."""
