"""The ``LucidTalk`` session orchestrator."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

from . import events
from .backends import AI, DRIVE, SESSION, TRANSCRIPTION, BackendFactory, BackendHandle, resolve, resolve_factories
from .config import build_config
from .errors import (
    AIProviderNotConfiguredError,
    AlreadyActiveError,
    DelegationError,
    NoActiveSessionError,
    P2PNotEnabledError,
)
from .events import EventEmitter
from .mock import MockTranscriptionFeed
from .models import Config, Session, TranscriptionEvent
from .prompts import DEFAULT_TEMPLATE, resolve_prompt

logger = structlog.get_logger(__name__)

MOCK_TRANSCRIPT = "Mock transcript text for testing"


class LucidTalk(EventEmitter):
    """Configure backend managers, run one transcription session at a time and
    forward its events.

    Every backend manager is optional. A missing manager turns the matching
    operation into an error (P2P, summaries) or into mock mode (transcription)
    instead of failing construction.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        backends: Optional[Mapping[str, BackendFactory]] = None,
        **overrides: Any,
    ) -> None:
        super().__init__()
        self.config = build_config(config, **overrides)
        self._factories = resolve_factories(backends)
        self._handles: Dict[str, BackendHandle] = {
            kind: BackendHandle.absent(kind, "not initialised") for kind in self._factories
        }
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._active = False
        self._starting = False
        self._session: Optional[Session] = None
        self._mock: Optional[MockTranscriptionFeed] = None
        self._forwarder: Optional[Callable[[Any], None]] = None

    async def __aenter__(self) -> "LucidTalk":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.dispose()

    # Backends -----------------------------------------------------------

    def handle(self, kind: str) -> BackendHandle:
        return self._handles[kind]

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Load every backend manager once; failures leave the handle absent."""

        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return

            if self.config.p2p:
                self._handles[DRIVE] = await self._attempt(DRIVE, self._initialize_drive)
                self._handles[SESSION] = await self._attempt(SESSION)
            self._handles[TRANSCRIPTION] = await self._attempt(TRANSCRIPTION)
            if self.config.ai and self.config.ai != "local":
                self._handles[AI] = await self._attempt(AI, self._configure_ai)

            self._initialized = True
            logger.info(
                "LucidTalk initialized",
                backends={kind: handle.present for kind, handle in self._handles.items()},
            )
            self.emit(events.INITIALIZED)

    async def _attempt(self, kind: str, setup: Optional[Callable[[Any], Any]] = None) -> BackendHandle:
        try:
            manager = self._factories[kind](self.config)
            if setup is not None:
                await setup(manager)
        except Exception as exc:
            logger.warning("Backend not available", backend=kind, error=str(exc))
            return BackendHandle.absent(kind, str(exc))
        logger.info("Backend initialized", backend=kind)
        return BackendHandle(kind=kind, manager=manager)

    async def _initialize_drive(self, manager: Any) -> None:
        await resolve(manager.initialize())

    async def _configure_ai(self, manager: Any) -> None:
        await resolve(manager.configure(provider=self.config.ai, api_keys=dict(self.config.api_keys)))

    # Transcription ------------------------------------------------------

    async def start_transcription(self, **options: Any) -> Session:
        """Start a new session and return it.

        Extra keyword ``options`` are passed through to the transcription
        backend. Without one, canned events are emitted every
        ``Config.mock_interval`` seconds.
        """

        if self._active or self._starting:
            raise AlreadyActiveError("Transcription already in progress")

        # Claimed before the first await so overlapping calls are rejected.
        self._starting = True
        try:
            return await self._start(options)
        finally:
            self._starting = False

    async def _start(self, options: Dict[str, Any]) -> Session:
        await self.initialize()
        session = Session.create()

        sessions = self._handles[SESSION]
        if self.config.p2p and sessions.present:
            try:
                drive_info = await resolve(sessions.manager.create_session_drive(session.id))
                session.drive_key = drive_info.get("driveKey", drive_info.get("drive_key"))
                session.discovery_key = drive_info.get("discoveryKey", drive_info.get("discovery_key"))
                logger.info("P2P session created", session_id=session.id, drive_key=session.drive_key)
            except Exception as exc:
                logger.warning("P2P session creation failed", session_id=session.id, error=str(exc))

        transcription = self._handles[TRANSCRIPTION]
        if transcription.present:
            await self._start_backend_transcription(transcription.manager, session, options)
        else:
            self._mock = MockTranscriptionFeed(
                self._emit_transcription, self.is_active, interval=self.config.mock_interval
            )
            self._mock.start()
            logger.info("Mock transcription started, no backend available", session_id=session.id)

        self._session = session
        self._active = True
        self.emit(events.SESSION_STARTED, session)
        return session

    async def _start_backend_transcription(self, manager: Any, session: Session, options: Dict[str, Any]) -> None:
        def forward(data: Any) -> None:
            self._emit_transcription(TranscriptionEvent.from_raw(data))

        manager.on(events.TRANSCRIPTION, forward)
        try:
            await resolve(
                manager.start_transcription(
                    **{"session_id": session.id, "output_dir": self.config.storage_path, **options}
                )
            )
        except Exception as exc:
            _unsubscribe(manager, forward)
            raise self._delegation_error("start transcription", exc, session_id=session.id) from exc
        self._forwarder = forward
        logger.info("Transcription started", session_id=session.id)

    def _emit_transcription(self, event: TranscriptionEvent) -> None:
        self.emit(events.TRANSCRIPTION, event)

    async def stop_transcription(self) -> None:
        """Stop the active session; does nothing when none is running."""

        if not self._active:
            return

        failure: Optional[BaseException] = None
        transcription = self._handles[TRANSCRIPTION]
        if transcription.present:
            try:
                await resolve(transcription.manager.stop_recording())
            except Exception as exc:
                failure = exc
            if self._forwarder is not None:
                _unsubscribe(transcription.manager, self._forwarder)
                self._forwarder = None

        self._active = False
        if self._mock is not None:
            await self._mock.stop()
            self._mock = None

        session = self._session
        if session is not None:
            session.end()
            self.emit(events.SESSION_STOPPED, session)
            logger.info("Transcription stopped", session_id=session.id)

        if failure is not None:
            raise self._delegation_error("stop transcription", failure) from failure

    # Summaries ----------------------------------------------------------

    async def summarize(
        self,
        template: str = DEFAULT_TEMPLATE,
        custom_prompt: Optional[str] = None,
        **options: Any,
    ) -> Any:
        """Generate a summary of the current transcript with the AI backend."""

        await self.initialize()
        ai = self._handles[AI]
        if not ai.present:
            raise AIProviderNotConfiguredError("AI provider not configured")

        prompt = resolve_prompt(template, custom_prompt)
        options = {"template": template, "custom_prompt": custom_prompt, **options}
        try:
            transcript = await self._transcript_text()
            summary = await resolve(
                ai.manager.generate_summary(transcript=transcript, prompt_template=prompt, options=options)
            )
        except Exception as exc:
            raise self._delegation_error("generate summary", exc, template=template) from exc

        self.emit(events.SUMMARY_GENERATED, summary)
        return summary

    async def _transcript_text(self) -> str:
        transcription = self._handles[TRANSCRIPTION]
        if transcription.present:
            return await resolve(transcription.manager.get_transcript())
        return MOCK_TRANSCRIPT

    # P2P ----------------------------------------------------------------

    async def _p2p_manager(self) -> Any:
        await self.initialize()
        sessions = self._handles[SESSION]
        if not self.config.p2p or not sessions.present:
            raise P2PNotEnabledError("P2P not enabled")
        return sessions.manager

    async def share_session(self, session_id: Optional[str] = None) -> Any:
        """Share ``session_id`` (or the current session) over P2P."""

        manager = await self._p2p_manager()
        target = session_id or (self._session.id if self._session else None)
        if not target:
            raise NoActiveSessionError("No session to share")

        try:
            share_info = await resolve(manager.share_session(target))
        except Exception as exc:
            raise self._delegation_error("share session", exc, session_id=target) from exc
        self.emit(events.SESSION_SHARED, share_info)
        return share_info

    async def connect_to_session(self, drive_key: str) -> Any:
        """Join a session shared by another peer."""

        manager = await self._p2p_manager()
        try:
            session_info = await resolve(manager.connect_to_session(drive_key))
        except Exception as exc:
            raise self._delegation_error("connect to session", exc, drive_key=drive_key) from exc
        self.emit(events.SESSION_CONNECTED, session_info)
        return session_info

    # State --------------------------------------------------------------

    def get_current_session(self) -> Optional[Session]:
        return self._session

    def is_active(self) -> bool:
        return self._active

    def on_transcription(self, callback: Callable[[TranscriptionEvent], Any]) -> Callable[..., Any]:
        return self.on(events.TRANSCRIPTION, callback)

    def on_error(self, callback: Callable[[BaseException], Any]) -> Callable[..., Any]:
        return self.on(events.ERROR, callback)

    async def dispose(self) -> None:
        """Stop any running transcription and drop every listener."""

        try:
            if self._active:
                await self.stop_transcription()
        finally:
            self.remove_all_listeners()

    def _delegation_error(self, operation: str, exc: BaseException, **context: Any) -> DelegationError:
        logger.error(f"Failed to {operation}", error=str(exc), **context)
        error = DelegationError(operation, exc)
        self.emit(events.ERROR, error)
        return error


def _unsubscribe(manager: Any, callback: Callable[..., Any]) -> None:
    for name in ("off", "remove_listener", "removeListener"):
        remove = getattr(manager, name, None)
        if callable(remove):
            remove(events.TRANSCRIPTION, callback)
            return
