import asyncio
import sys
import textwrap

import pytest

from lucidtalk.backends import (
    AI,
    BACKEND_KINDS,
    SESSION,
    TRANSCRIPTION,
    BackendHandle,
    directory_factory,
    resolve,
    resolve_factories,
)
from lucidtalk.errors import BackendUnavailableError, ConfigurationError
from lucidtalk.models import Config


def _write_backend(root, relative, source):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source))
    return path


def test_directory_factory_requires_backend_path():
    with pytest.raises(BackendUnavailableError, match="no backend path configured"):
        directory_factory(TRANSCRIPTION)(Config())


def test_directory_factory_reports_missing_file(tmp_path):
    with pytest.raises(BackendUnavailableError, match="does not exist"):
        directory_factory(AI)(Config(backend_path=str(tmp_path)))


def test_directory_factory_reports_missing_class(tmp_path):
    _write_backend(tmp_path, "ai/ai_provider_manager.py", "class SomethingElse:\n    pass\n")
    with pytest.raises(BackendUnavailableError, match="has no AIProviderManager"):
        directory_factory(AI)(Config(backend_path=str(tmp_path)))


def test_directory_factory_loads_manager_class(tmp_path):
    _write_backend(
        tmp_path,
        "transcription/transcription_manager.py",
        """
        class TranscriptionManager:
            def get_transcript(self):
                return "loaded from disk"
        """,
    )
    manager = directory_factory(TRANSCRIPTION)(Config(backend_path=str(tmp_path)))
    assert manager.get_transcript() == "loaded from disk"


def test_session_manager_receives_storage_options(tmp_path):
    _write_backend(
        tmp_path,
        "backend/session_drive_manager.py",
        """
        class SessionDriveManager:
            def __init__(self, storage_path, share_mode, verbose):
                self.options = (storage_path, share_mode, verbose)
        """,
    )
    manager = directory_factory(SESSION)(Config(backend_path=str(tmp_path), storage_path="./store"))
    assert manager.options == ("./store", True, False)


def test_resolve_factories_prefers_overrides():
    sentinel = object()
    factories = resolve_factories({AI: lambda _config: sentinel})
    assert set(factories) == set(BACKEND_KINDS)
    assert factories[AI](Config()) is sentinel


def test_resolve_factories_rejects_unknown_kind():
    with pytest.raises(ConfigurationError):
        resolve_factories({"speech": lambda _config: None})


def test_backend_handle_presence():
    assert BackendHandle(kind=AI, manager=object()).present
    absent = BackendHandle.absent(AI, "missing")
    assert not absent.present
    assert absent.error == "missing"


def test_resolve_handles_plain_values_and_awaitables():
    async def produce():
        return "async"

    async def scenario():
        return await resolve("sync"), await resolve(produce())

    assert asyncio.run(scenario()) == ("sync", "async")


def test_directory_factory_loads_module_with_dataclasses(tmp_path):
    _write_backend(
        tmp_path,
        "ai/ai_provider_manager.py",
        """
        from __future__ import annotations

        from dataclasses import dataclass, field


        @dataclass
        class AIProviderManager:
            provider: str = "local"
            api_keys: dict[str, str] = field(default_factory=dict)

            def configure(self, *, provider, api_keys):
                self.provider = provider
                self.api_keys = dict(api_keys)
        """,
    )
    manager = directory_factory(AI)(Config(backend_path=str(tmp_path)))
    manager.configure(provider="groq", api_keys={"groq": "gsk"})
    assert manager.provider == "groq"
    assert type(manager).__module__ == "lucidtalk_backend_ai"


def test_failed_backend_import_is_not_left_registered(tmp_path):
    _write_backend(tmp_path, "ai/ai_provider_manager.py", "raise ImportError('missing sdk')\n")
    with pytest.raises(BackendUnavailableError, match="missing sdk"):
        directory_factory(AI)(Config(backend_path=str(tmp_path)))
    assert "lucidtalk_backend_ai" not in sys.modules
