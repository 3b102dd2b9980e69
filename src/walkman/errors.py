"""Errors raised while establishing a realtime voice session."""

from typing import Optional


class WalkmanError(Exception):
    """Base class for session failures."""


class CredentialError(WalkmanError):
    """The ephemeral credential could not be obtained or parsed."""


class MediaAccessError(WalkmanError):
    """The local microphone could not be opened."""


class SignalingError(WalkmanError):
    """The remote signaling endpoint rejected the offer or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
