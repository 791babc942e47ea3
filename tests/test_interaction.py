import io

import pytest

from conftest import ScriptedUI
from patch_runner.errors import LockfilePresent
from patch_runner.interaction import Action, ConsoleUI, DecisionRequest, HeadlessUI, ask


def _request(*actions):
    return DecisionRequest(title="Title", description="Something happened", actions=tuple(actions))


def _console(answers):
    it = iter(answers)

    def input_fn(prompt):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    out = io.StringIO()
    return ConsoleUI(stream=out, input_fn=input_fn), out


def test_ask_rejects_unoffered_answer():
    ui = ScriptedUI([Action.DELETE])
    with pytest.raises(ValueError):
        ask(ui, _request(Action.RETRY, Action.EXIT))


def test_ask_returns_offered_answer():
    ui = ScriptedUI([Action.RETRY])
    assert ask(ui, _request(Action.RETRY, Action.EXIT)) == Action.RETRY


def test_request_for_error_uses_error_title():
    req = DecisionRequest.for_error(LockfilePresent(3.0, "/tmp/x.lock"), [Action.WAIT, Action.CANCEL])
    assert req.title == LockfilePresent.title
    assert req.actions == (Action.WAIT, Action.CANCEL)


def test_console_first_letter_keys():
    ui, out = _console(["d"])
    assert ui.decide(_request(Action.WAIT, Action.DELETE, Action.CANCEL)) == Action.DELETE
    assert "[w] wait" in out.getvalue()


def test_console_numeric_keys_when_letters_collide():
    ui, out = _console(["2"])
    assert ui.decide(_request(Action.CONTINUE, Action.CANCEL)) == Action.CANCEL
    assert "[1] continue" in out.getvalue()


def test_console_accepts_full_name_and_reprompts():
    ui, out = _console(["nope", "Offline"])
    assert ui.decide(_request(Action.RETRY, Action.OFFLINE, Action.EXIT)) == Action.OFFLINE
    assert "Unrecognized choice" in out.getvalue()


def test_console_end_of_input_picks_last_action():
    ui, _ = _console([])
    assert ui.decide(_request(Action.RETRY, Action.OFFLINE, Action.EXIT)) == Action.EXIT


def test_console_progress_line():
    ui, out = _console([])
    ui.set_progress(0.5, 12.0)
    ui.set_progress(0.5, 12.0)
    ui.set_progress(1.0)
    text = out.getvalue()
    assert text.count(" 50%") == 1
    assert "100%\n" in text


def test_headless_preferences():
    ui = HeadlessUI()
    assert ui.decide(_request(Action.WAIT, Action.DELETE, Action.CANCEL)) == Action.WAIT
    assert ui.decide(_request(Action.RETRY, Action.OFFLINE, Action.EXIT)) == Action.OFFLINE
    assert ui.decide(_request(Action.RETRY, Action.EXIT)) == Action.EXIT


def test_headless_refuses_override_warning():
    ui = HeadlessUI(preferences=(Action.CONTINUE,))
    assert ui.decide(_request(Action.CONTINUE, Action.CANCEL)) == Action.CANCEL
