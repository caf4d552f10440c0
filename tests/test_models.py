import re
from types import SimpleNamespace

from lucidtalk.models import STATUS_ENDED, Session, TranscriptionEvent, generate_session_id


def test_session_ids_are_unique_and_well_formed():
    ids = {generate_session_id() for _ in range(200)}
    assert len(ids) == 200
    for session_id in ids:
        assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", session_id)


def test_session_end_sets_status_and_end_time():
    session = Session.create()
    assert session.end_time is None
    session.end()
    assert session.status == STATUS_ENDED
    assert session.end_time >= session.start_time


def test_event_from_mapping_accepts_camel_case():
    event = TranscriptionEvent.from_raw(
        {"text": "hi", "timestamp": 1700000000000, "confidence": 0.8, "isFinal": True, "speaker": "A"}
    )
    assert event == TranscriptionEvent("hi", 1700000000000, 0.8, True, "A")


def test_event_from_object_attributes():
    raw = SimpleNamespace(text="partial", timestamp=5, confidence=0.4, is_final=False)
    event = TranscriptionEvent.from_raw(raw)
    assert event.text == "partial"
    assert event.is_final is False
    assert event.speaker is None
