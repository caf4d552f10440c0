"""Dataclasses describing configuration, sessions and events for lucidtalk."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

PRIVACY_MODES = ("local-only", "p2p-only", "hybrid")
AI_PROVIDERS = ("local", "openai", "anthropic", "groq")

STATUS_ACTIVE = "active"
STATUS_ENDED = "ended"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_session_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"session_{now_ms()}_{suffix}"


@dataclass(frozen=True, slots=True)
class Config:
    """SDK configuration, immutable once the orchestrator is built."""

    privacy: Optional[str] = "local-only"
    p2p: bool = False
    ai: str = "local"
    api_keys: Dict[str, str] = field(default_factory=dict)
    storage_path: str = "./sessions"
    backend_path: Optional[str] = None
    mock_interval: float = 3.0


@dataclass(slots=True)
class Session:
    """A single transcription activity owned by the orchestrator."""

    id: str
    start_time: int
    end_time: Optional[int] = None
    participants: List[Any] = field(default_factory=list)
    status: str = STATUS_ACTIVE
    drive_key: Optional[str] = None
    discovery_key: Optional[str] = None

    @classmethod
    def create(cls) -> "Session":
        return cls(id=generate_session_id(), start_time=now_ms())

    def end(self) -> None:
        self.end_time = max(now_ms(), self.start_time)
        self.status = STATUS_ENDED


@dataclass(frozen=True, slots=True)
class TranscriptionEvent:
    """One piece of recognised speech delivered to listeners."""

    text: str
    timestamp: int
    confidence: float
    is_final: bool
    speaker: Optional[str] = None

    @classmethod
    def from_raw(cls, data: Any) -> "TranscriptionEvent":
        """Map a backend payload (mapping or object) onto the event shape."""

        if isinstance(data, Mapping):
            get = data.get
        else:
            def get(key: str, default: Any = None) -> Any:
                return getattr(data, key, default)

        is_final = get("is_final")
        if is_final is None:
            is_final = get("isFinal", False)
        timestamp = get("timestamp")
        return cls(
            text=get("text", "") or "",
            timestamp=int(timestamp) if timestamp is not None else now_ms(),
            confidence=float(get("confidence", 0.0) or 0.0),
            is_final=bool(is_final),
            speaker=get("speaker"),
        )
