import pytest

from dialdeck.core.mappings import ButtonMappings, MappingError
from dialdeck.core.types import RemapApplied, RemapConflict, RemapCancelled
from dialdeck.interpreter.buttons import ButtonDisambiguator
from dialdeck.interpreter.remap import RemapSession


def make():
    b = ButtonDisambiguator()
    return RemapSession(ButtonMappings(), b, timeout_ms=10_000), b


def detect(b, button_id, t):
    (sig,) = b.on_button_down(button_id, t)
    return sig


def test_free_button_is_applied():
    s, b = make()
    s.begin("Y", 0)
    assert b.detecting
    out = s.on_detected(detect(b, 20, 100), 100)
    assert out == [RemapApplied(logical="Y", physical_id=20)]
    assert s.mappings.physical["Y"] == 20
    assert not b.detecting
    assert not s.active


def test_conflict_waits_for_answer_then_reassigns():
    s, b = make()
    s.begin("Y", 0)
    out = s.on_detected(detect(b, 8, 50), 50)   # 8 is A
    assert out == [RemapConflict(logical="Y", physical_id=8, existing="A")]
    assert s.awaiting_answer
    assert s.mappings.physical["Y"] == 7

    out = s.resolve_conflict(True)
    assert out == [RemapApplied(logical="Y", physical_id=8, cleared="A")]
    assert s.mappings.physical["Y"] == 8
    assert "A" not in s.mappings.physical


def test_declined_conflict_changes_nothing():
    s, b = make()
    s.begin("Y", 0)
    s.on_detected(detect(b, 8, 50), 50)
    assert s.resolve_conflict(False) == [RemapCancelled(logical="Y", reason="declined")]
    assert s.mappings.physical["Y"] == 7
    assert s.mappings.physical["A"] == 8
    assert not s.active


def test_same_button_is_not_a_conflict():
    s, b = make()
    s.begin("Y", 0)
    assert s.on_detected(detect(b, 7, 10), 10) == [RemapApplied(logical="Y", physical_id=7)]


def test_timeout_cancels_detection():
    s, b = make()
    s.begin("X", 1000)
    assert s.tick(10_999) == []
    assert s.tick(11_000) == [RemapCancelled(logical="X", reason="timeout")]
    assert not b.detecting
    assert not s.active
    assert s.tick(20_000) == []


def test_no_timeout_while_awaiting_answer():
    s, b = make()
    s.begin("Y", 0)
    s.on_detected(detect(b, 8, 50), 50)
    assert s.tick(60_000) == []
    assert s.awaiting_answer


def test_host_cancel():
    s, b = make()
    s.begin("B", 0)
    assert s.cancel() == [RemapCancelled(logical="B", reason="cancelled")]
    assert not b.detecting
    assert s.cancel() == []


def test_unknown_logical_button_is_rejected():
    s, _ = make()
    with pytest.raises(MappingError):
        s.begin("TRIGGER", 0)
