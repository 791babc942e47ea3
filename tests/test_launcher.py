import os
import stat

import pytest

from patch_runner.errors import SpawnFailed
from patch_runner.lib.launcher import LaunchSequencer, locate_executable

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX executables")


def _script(path, body="exit 0\n"):
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def test_missing_executable(tmp_path):
    with pytest.raises(SpawnFailed) as exc:
        LaunchSequencer(cwd=tmp_path).launch(tmp_path / "Launcher", [])
    assert "not found" in exc.value.reason


def test_not_executable(tmp_path):
    target = tmp_path / "Launcher"
    target.write_text("data", encoding="utf-8")
    with pytest.raises(SpawnFailed) as exc:
        LaunchSequencer(cwd=tmp_path).launch(target, [])
    assert "permission denied" in exc.value.reason


def test_directory_is_not_a_target(tmp_path):
    with pytest.raises(SpawnFailed):
        LaunchSequencer(cwd=tmp_path).launch(tmp_path, [])


def test_launch_passes_literal_argv(tmp_path):
    out = tmp_path / "args.txt"
    target = _script(tmp_path / "Launcher", f'printf "%s\\n" "$@" > "{out}"\n')
    argv = ["--lockfile", "/path with spaces/launcher.lock", "$HOME", "a;b"]
    handoff = LaunchSequencer(cwd=tmp_path, wait_for_exit=True).launch(target, argv)
    assert handoff.exit_code == 0
    assert handoff.pid > 0
    assert out.read_text(encoding="utf-8").splitlines() == argv


def test_detached_launch_returns_immediately(tmp_path):
    target = _script(tmp_path / "Launcher")
    handoff = LaunchSequencer(cwd=tmp_path).launch(target, [])
    assert handoff.exit_code is None


def test_spawn_oserror_is_reported(tmp_path, monkeypatch):
    target = _script(tmp_path / "Launcher")

    def boom(*args, **kwargs):
        raise OSError(8, "Exec format error")

    monkeypatch.setattr("patch_runner.lib.command.subprocess.Popen", boom)
    with pytest.raises(SpawnFailed) as exc:
        LaunchSequencer(cwd=tmp_path).launch(target, [])
    assert exc.value.reason == "Exec format error"


def test_locate_relative_and_path(tmp_path):
    target = _script(tmp_path / "Launcher")
    assert locate_executable("Launcher", cwd=tmp_path) == target
    assert locate_executable("sh", cwd=tmp_path).is_absolute()
