import io

import pytest
import yaml

from conftest import FakeResponse, FakeSession, ScriptedUI
from patch_runner import main as runner_main
from patch_runner.errors import AlreadyRunning, NetworkUnreachable
from patch_runner.interaction import HeadlessUI
from patch_runner.lib.instance import SingleInstanceGuard
from ui import cli, gui_stub


def _config(tmp_path):
    p = tmp_path / "runner.yaml"
    p.write_text(yaml.safe_dump({"paths": {"base_dir": str(tmp_path)}}), encoding="utf-8")
    return str(p)


def test_build_steps_order():
    ids = [s.step_id for s in runner_main.build_steps()]
    assert ids == sorted(ids)
    assert ids[0] == "10_single_instance"
    assert ids[-1] == "70_launch"


def test_main_returns_already_running_exit_code(tmp_path, dat_file):
    holder = SingleInstanceGuard(tmp_path / ".patch-runner.guard")
    assert holder.acquire()
    try:
        code = runner_main.main(["--config", _config(tmp_path), "--non-interactive"])
    finally:
        holder.release()
    assert code == AlreadyRunning.exit_code == 3


def test_main_missing_launcher_data_is_an_error(tmp_path):
    code = runner_main.main(["--config", _config(tmp_path), "--dat", str(tmp_path / "nope.dat"), "--non-interactive"])
    assert code == 1


def test_cli_goes_non_interactive_without_tty(monkeypatch):
    seen = []
    monkeypatch.setattr(cli, "runner_main", lambda args: seen.append(args) or 0)
    monkeypatch.setattr(cli.sys, "stdin", io.StringIO())
    assert cli.main(["--verbose"]) == 0
    assert seen == [["--verbose", "--non-interactive"]]


def test_gui_stub_runs_with_supplied_ui(monkeypatch):
    calls = {}

    def fake_run(**kwargs):
        calls.update(kwargs)
        return "state"

    monkeypatch.setattr(gui_stub, "run", fake_run)
    ui = ScriptedUI()
    assert gui_stub.run_from_gui(ui=ui, config_path="c.yaml") == "state"
    assert calls["ui"] is ui
    assert calls["config_path"] == "c.yaml"


def test_headless_run_closes_ui_on_failure(tmp_path, dat_file):
    class ClosingUI(HeadlessUI):
        closed = False

        def close(self):
            self.closed = True

    ui = ClosingUI()
    session = FakeSession({"https://network-test.patchkit.net": FakeResponse(500, "down")})
    with pytest.raises(NetworkUnreachable):
        runner_main.run(ui=ui, config_path=_config(tmp_path), environ={}, session=session, sleep=lambda s: None)
    assert ui.closed
    assert not (tmp_path / "launcher.lock").exists()


def test_main_missing_config_file_is_an_error(tmp_path):
    assert runner_main.main(["--config", str(tmp_path / "absent.yaml"), "--non-interactive"]) == 1


def test_main_non_yaml_config_is_an_error(tmp_path):
    cfg = tmp_path / "runner.json"
    cfg.write_text("{}", encoding="utf-8")
    assert runner_main.main(["--config", str(cfg), "--non-interactive"]) == 1
