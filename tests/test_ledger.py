import json
from pathlib import Path

from patch_runner.lib.ledger import VersionInfo, VersionLedger, plan_cleanup


def test_plan_cleanup_reverses():
    files = [Path("/a/f1"), Path("/a/f2"), Path("/a/f3")]
    assert plan_cleanup(files) == [Path("/a/f3"), Path("/a/f2"), Path("/a/f1")]


def test_empty_ledger(tmp_path):
    ledger = VersionLedger(tmp_path / "runner_state.json")
    assert ledger.version is None
    assert ledger.previous_files == []
    assert ledger.needs_update("1", "secret")


def test_record_and_reload(tmp_path):
    path = tmp_path / "runner_state.json"
    ledger = VersionLedger(path)
    ledger.record_install([tmp_path / "a.txt", tmp_path / "b.txt"], VersionInfo("secret", "42"))

    reloaded = VersionLedger(path)
    assert reloaded.version == VersionInfo("secret", "42")
    assert reloaded.previous_files == [tmp_path / "a.txt", tmp_path / "b.txt"]


def test_record_keeps_previous_for_this_run(tmp_path):
    path = tmp_path / "runner_state.json"
    VersionLedger(path).record_install([tmp_path / "old.txt"], VersionInfo("secret", "1"))

    ledger = VersionLedger(path)
    ledger.record_install([tmp_path / "new.txt"], VersionInfo("secret", "2"))
    assert ledger.previous_files == [tmp_path / "old.txt"]
    assert ledger.current_files == [tmp_path / "new.txt"]
    assert VersionLedger(path).previous_files == [tmp_path / "new.txt"]


def test_needs_update_is_literal(tmp_path):
    ledger = VersionLedger(tmp_path / "runner_state.json")
    ledger.record_install([], VersionInfo("secret", "1.0"))
    assert not ledger.needs_update("1.0", "secret")
    assert ledger.needs_update("1.0.0", "secret")
    assert ledger.needs_update("0.9", "secret")
    assert ledger.needs_update("1.0", "other-secret")


def test_cleanup_reverse_order_and_skips_non_empty_dirs(tmp_path):
    d = tmp_path / "dir"
    d.mkdir()
    f1 = d / "f1.txt"
    f1.write_text("1")
    kept_dir = tmp_path / "kept"
    kept_dir.mkdir()
    (kept_dir / "user-file.txt").write_text("mine")
    f3 = tmp_path / "f3.txt"
    f3.write_text("3")

    ledger = VersionLedger(tmp_path / "runner_state.json")
    report = ledger.cleanup([d, f1, kept_dir, f3])

    assert report.removed == [f3, f1, d]
    assert report.kept_non_empty == [kept_dir]
    assert kept_dir.exists() and (kept_dir / "user-file.txt").exists()
    assert not d.exists()


def test_cleanup_missing_paths_are_already_clean(tmp_path):
    ledger = VersionLedger(tmp_path / "runner_state.json")
    gone = tmp_path / "gone.txt"
    report = ledger.cleanup([gone])
    assert report.missing == [gone]
    assert report.failed == []


def test_cleanup_keeps_files_of_new_install(tmp_path):
    shared = tmp_path / "shared.txt"
    shared.write_text("new")
    stale = tmp_path / "stale.txt"
    stale.write_text("old")

    ledger = VersionLedger(tmp_path / "runner_state.json")
    ledger.cleanup([shared, stale], keep=[shared])
    assert shared.exists()
    assert not stale.exists()


def test_torn_ledger_is_treated_as_empty(tmp_path):
    path = tmp_path / "runner_state.json"
    path.write_text('{"version": {"patcher_secret": "s", "vers', encoding="utf-8")
    ledger = VersionLedger(path)
    assert ledger.version is None
    assert ledger.previous_files == []


def test_yaml_ledger(tmp_path):
    path = tmp_path / "runner_state.yaml"
    VersionLedger(path).record_install([tmp_path / "a"], VersionInfo("s", "7"))
    assert VersionLedger(path).version == VersionInfo("s", "7")


def test_ledger_file_is_json(tmp_path):
    path = tmp_path / "runner_state.json"
    VersionLedger(path).record_install([tmp_path / "a"], VersionInfo("s", "7"))
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == {"patcher_secret": "s", "version": "7"}
    assert data["installed_files"] == [str(tmp_path / "a")]
