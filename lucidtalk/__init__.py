"""Top-level package for lucidtalk."""

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    AIProviderNotConfiguredError,
    AlreadyActiveError,
    BackendUnavailableError,
    ConfigurationError,
    DelegationError,
    LucidTalkError,
    NoActiveSessionError,
    P2PNotEnabledError,
)
from .models import Config, Session, TranscriptionEvent  # noqa: E402
from .sdk import LucidTalk  # noqa: E402

__all__ = [
    "AIProviderNotConfiguredError",
    "AlreadyActiveError",
    "BackendUnavailableError",
    "Config",
    "ConfigurationError",
    "DelegationError",
    "LucidTalk",
    "LucidTalkError",
    "NoActiveSessionError",
    "P2PNotEnabledError",
    "Session",
    "TranscriptionEvent",
    "__version__",
]
