# pylint: disable=missing-module-docstring,missing-function-docstring

from orchestrator.commands import LogEvent
from orchestrator.enums.state import State
from orchestrator.events import EventType, Start, Stop
from orchestrator.reducer import reduce

from fakes import make_state


def test_reducer_emits_logevent_with_required_fields():
    state = make_state(state=State.IDLE)

    event = Start(
        event_type=EventType.START,
        ts_ms=123,
    )

    _, commands = reduce(state, event)

    log_events = [c for c in commands if isinstance(c, LogEvent)]
    assert log_events, "Reducer must emit at least one LogEvent"

    payload = log_events[0].event

    assert payload["ts_ms"] == 123
    assert payload["state"] == "listening"
    assert payload["event_type"] == "START"
    assert payload["decision"] == "state_changed"
    assert payload["generation"] == 0
    assert payload["details"] == {
        "from_state": "idle",
        "to_state": "listening",
        "source": "start",
    }


def test_logevents_come_after_side_effects():
    state = make_state(state=State.SPEAKING)

    _, commands = reduce(state, Stop(event_type=EventType.STOP, ts_ms=1))

    first_log = next(i for i, c in enumerate(commands) if isinstance(c, LogEvent))
    assert all(isinstance(c, LogEvent) for c in commands[first_log:])


def test_ignored_events_explain_why():
    state = make_state(state=State.PROCESSING)

    _, commands = reduce(state, Start(event_type=EventType.START, ts_ms=1))

    (log,) = commands
    assert isinstance(log, LogEvent)
    assert log.event["decision"] == "ignore"
    assert log.event["details"] == {"reason": "start_while_processing"}
