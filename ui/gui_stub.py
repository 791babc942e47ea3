"""GUI wrapper stub.

A real GUI (egui/Qt/Tk window) should:
- Implement patch_runner.interaction.RunnerUI (status line, progress bar,
  blocking dialogs for DecisionRequest)
- Run patch_runner.main.run(...) on a worker thread so the window stays
  responsive; decide() blocks that worker until the user clicks a button
- Close the window once run() returns (the launcher has taken over)

This module exists to document the integration boundary.
"""

from __future__ import annotations

from typing import Optional

from patch_runner.interaction import RunnerUI
from patch_runner.main import run
from patch_runner.pipeline import RunState


def run_from_gui(*, ui: RunnerUI, config_path: Optional[str] = None, dat_path: Optional[str] = None) -> RunState:
    return run(ui=ui, config_path=config_path, dat_path=dat_path)
