"""
Fake backend managers and fixtures for lucidtalk tests.
"""

import asyncio

import pytest

from lucidtalk import config
from lucidtalk.events import EventEmitter


class FakeDriveManager:
    def __init__(self, fail=False):
        self.fail = fail
        self.initialized = False

    async def initialize(self):
        if self.fail:
            raise RuntimeError("hyperdrive offline")
        self.initialized = True


class FakeSessionManager:
    def __init__(self):
        self.created = []
        self.shared = []
        self.connected = []
        self.fail_create = False
        self.fail_share = False

    async def create_session_drive(self, session_id):
        if self.fail_create:
            raise RuntimeError("swarm unreachable")
        self.created.append(session_id)
        return {"driveKey": f"drive-{session_id}", "discoveryKey": f"disc-{session_id}"}

    async def share_session(self, session_id):
        if self.fail_share:
            raise RuntimeError("share refused")
        self.shared.append(session_id)
        return {"sessionId": session_id, "driveKey": f"drive-{session_id}"}

    def connect_to_session(self, drive_key):
        self.connected.append(drive_key)
        return {"driveKey": drive_key, "status": "connected"}


class FakeTranscriptionManager(EventEmitter):
    def __init__(self, fail_start=False, fail_stop=False, start_delay=0):
        super().__init__()
        self.start_delay = start_delay
        self.starts = 0
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.started_with = None
        self.stopped = 0
        self.transcript = "We agreed to ship on Friday."

    async def start_transcription(self, **options):
        self.starts += 1
        if self.start_delay:
            await asyncio.sleep(self.start_delay)
        if self.fail_start:
            raise RuntimeError("microphone busy")
        self.started_with = options

    async def stop_recording(self):
        self.stopped += 1
        if self.fail_stop:
            raise RuntimeError("device vanished")

    def get_transcript(self):
        return self.transcript


class FakeAIManager:
    def __init__(self, fail=False):
        self.fail = fail
        self.configured = None
        self.requests = []

    def configure(self, *, provider, api_keys):
        self.configured = {"provider": provider, "api_keys": api_keys}

    async def generate_summary(self, *, transcript, prompt_template, options):
        if self.fail:
            raise RuntimeError("rate limited")
        self.requests.append(
            {"transcript": transcript, "prompt_template": prompt_template, "options": options}
        )
        return f"Summary of: {transcript}"


def factory(manager):
    return lambda _config: manager


def failing_factory(message="not installed"):
    def build(_config):
        raise ImportError(message)

    return build


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)
    return cfg_path


@pytest.fixture
def recorder():
    """Collects every payload emitted for the events it is attached to."""

    class Recorder:
        def __init__(self):
            self.calls = []

        def attach(self, emitter, *event_names):
            for name in event_names:
                emitter.on(name, lambda *args, _name=name: self.calls.append((_name, args)))

        def names(self):
            return [name for name, _ in self.calls]

        def payloads(self, name):
            return [args[0] if args else None for event, args in self.calls if event == name]

    return Recorder()
