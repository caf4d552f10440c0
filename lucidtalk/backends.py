"""Backend manager contracts and loading."""

from __future__ import annotations

import importlib.util
import inspect
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple

from .errors import BackendUnavailableError, ConfigurationError
from .models import Config

DRIVE = "drive"
SESSION = "session"
TRANSCRIPTION = "transcription"
AI = "ai"

BACKEND_KINDS = (DRIVE, SESSION, TRANSCRIPTION, AI)

# Relative file and class name of each manager under ``Config.backend_path``.
BACKEND_MODULES: Dict[str, Tuple[str, str]] = {
    DRIVE: ("backend/hyperdrive_manager.py", "HyperdriveManager"),
    SESSION: ("backend/session_drive_manager.py", "SessionDriveManager"),
    TRANSCRIPTION: ("transcription/transcription_manager.py", "TranscriptionManager"),
    AI: ("ai/ai_provider_manager.py", "AIProviderManager"),
}

BackendFactory = Callable[[Config], Any]


class DriveManager(Protocol):
    """Peer-to-peer drive host."""

    def initialize(self) -> Any:
        ...


class SessionDriveManager(Protocol):
    """Creates, shares and joins per-session drives."""

    def create_session_drive(self, session_id: str) -> Mapping[str, str]:
        """Return a mapping with ``driveKey`` and ``discoveryKey``."""

    def share_session(self, session_id: str) -> Any:
        ...

    def connect_to_session(self, drive_key: str) -> Any:
        ...


class TranscriptionManager(Protocol):
    """Captures audio and emits ``transcription`` events."""

    def start_transcription(self, *, session_id: str, output_dir: str, **options: Any) -> Any:
        ...

    def stop_recording(self) -> Any:
        ...

    def get_transcript(self) -> Any:
        """Return the full transcript text of the current recording."""

    def on(self, event: str, callback: Callable[..., Any]) -> Any:
        ...

    def off(self, event: str, callback: Callable[..., Any]) -> Any:
        ...


class AIManager(Protocol):
    """Runs summaries against a hosted or local language model."""

    def configure(self, *, provider: str, api_keys: Mapping[str, str]) -> Any:
        ...

    def generate_summary(self, *, transcript: str, prompt_template: str, options: Mapping[str, Any]) -> Any:
        ...


@dataclass(frozen=True, slots=True)
class BackendHandle:
    """A backend manager that is either present or absent with a reason."""

    kind: str
    manager: Any = None
    error: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.manager is not None

    @classmethod
    def absent(cls, kind: str, error: Optional[str] = None) -> "BackendHandle":
        return cls(kind=kind, manager=None, error=error)


async def resolve(value: Any) -> Any:
    """Await ``value`` if the backend returned an awaitable."""

    if inspect.isawaitable(value):
        return await value
    return value


def _load_class(backend_path: Path, relative: str, class_name: str, kind: str) -> type:
    module_path = backend_path / relative
    if not module_path.is_file():
        raise BackendUnavailableError(kind, f"{module_path} does not exist")
    module_name = f"lucidtalk_backend_{kind}"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise BackendUnavailableError(kind, f"cannot import {module_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise BackendUnavailableError(kind, f"failed to import {module_path}: {exc}") from exc
    try:
        return getattr(module, class_name)
    except AttributeError as exc:
        raise BackendUnavailableError(kind, f"{module_path} has no {class_name}") from exc


def _constructor_kwargs(kind: str, config: Config) -> Dict[str, Any]:
    if kind == SESSION:
        return {"storage_path": config.storage_path, "share_mode": True, "verbose": False}
    return {}


def directory_factory(kind: str) -> BackendFactory:
    """Return a factory that builds ``kind`` from ``Config.backend_path``."""

    relative, class_name = BACKEND_MODULES[kind]

    def factory(config: Config) -> Any:
        if not config.backend_path:
            raise BackendUnavailableError(kind, "no backend path configured")
        cls = _load_class(Path(config.backend_path).expanduser(), relative, class_name, kind)
        return cls(**_constructor_kwargs(kind, config))

    return factory


def resolve_factories(overrides: Optional[Mapping[str, BackendFactory]] = None) -> Dict[str, BackendFactory]:
    """Merge caller supplied factories over directory based loading."""

    overrides = dict(overrides or {})
    unknown = sorted(set(overrides) - set(BACKEND_KINDS))
    if unknown:
        raise ConfigurationError(f"Unknown backend kind: {', '.join(unknown)}")
    return {kind: overrides.get(kind) or directory_factory(kind) for kind in BACKEND_KINDS}
