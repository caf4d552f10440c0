"""Exceptions raised by the lucidtalk SDK."""

from __future__ import annotations


class LucidTalkError(RuntimeError):
    """Base class for every error raised by lucidtalk."""


class ConfigurationError(LucidTalkError):
    """Raised when configuration is missing, malformed or cannot be persisted."""


class AlreadyActiveError(LucidTalkError):
    """Raised when a transcription is started while another one is running."""


class AIProviderNotConfiguredError(LucidTalkError):
    """Raised when a summary is requested without an AI backend."""


class P2PNotEnabledError(LucidTalkError):
    """Raised when a P2P operation is requested without P2P support."""


class NoActiveSessionError(LucidTalkError):
    """Raised when an operation needs a session and none is available."""


class BackendUnavailableError(LucidTalkError):
    """Raised when a backend manager cannot be loaded or initialised."""

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(f"{kind} backend not available: {reason}")
        self.kind = kind
        self.reason = reason


class DelegationError(LucidTalkError):
    """Raised when a call into a present backend manager fails."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {operation}: {cause}")
        self.operation = operation
