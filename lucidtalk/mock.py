"""Canned transcription feed used when no transcription backend is available."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

import structlog

from .models import TranscriptionEvent, now_ms

logger = structlog.get_logger(__name__)

MOCK_PHRASES = (
    "Hello everyone, welcome to the meeting",
    "Let's start with the agenda for today",
    "First item is about the project timeline",
    "We need to discuss the upcoming deadline",
    "Any questions or concerns?",
)
MOCK_CONFIDENCE = 0.95
MOCK_SPEAKER = "Speaker 1"


class MockTranscriptionFeed:
    """Emit one canned event every ``interval`` seconds while ``is_active()`` holds.

    The feed checks ``is_active`` on every tick and returns as soon as it is
    false. ``stop()`` additionally cancels and awaits the task.
    """

    def __init__(
        self,
        emit: Callable[[TranscriptionEvent], None],
        is_active: Callable[[], bool],
        interval: float = 3.0,
        phrases: Sequence[str] = MOCK_PHRASES,
    ) -> None:
        if interval <= 0:
            raise ValueError("Mock interval must be positive")
        self._emit = emit
        self._is_active = is_active
        self.interval = interval
        self.phrases = tuple(phrases)
        self.emitted = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self.emitted = 0
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def next_event(self) -> TranscriptionEvent:
        text = self.phrases[self.emitted % len(self.phrases)]
        self.emitted += 1
        return TranscriptionEvent(
            text=text,
            timestamp=now_ms(),
            confidence=MOCK_CONFIDENCE,
            is_final=True,
            speaker=MOCK_SPEAKER,
        )

    async def _run(self) -> None:
        logger.info("Mock transcription started", interval=self.interval)
        while True:
            await asyncio.sleep(self.interval)
            if not self._is_active():
                logger.debug("Mock transcription finished", emitted=self.emitted)
                return
            self._emit(self.next_event())
