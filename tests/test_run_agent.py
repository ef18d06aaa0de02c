"""
Tests for the example pipeline agent in scripts/run_agent.py.
"""

import importlib.util
import logging
import sys
from pathlib import Path

import pytest

from blackboard import Blackboard
from blackboard.logging_config import LOGGER_NAME

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "run_agent.py"


@pytest.fixture(scope="module")
def run_agent():
    spec = importlib.util.spec_from_file_location("run_agent", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def data_files(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    for name in ("a.txt", "b.txt", "README"):
        (data / name).write_text("payload")
    return data


@pytest.fixture
def isolated_agent(tmp_path, clean_env):
    clean_env.chdir(tmp_path)
    logger = logging.getLogger(LOGGER_NAME)
    level = logger.level
    yield clean_env
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)


def test_run_stage_processes_each_file_once(run_agent, bb, blackboard_dir, data_files, caplog):
    paths = sorted(str(p) for p in data_files.iterdir())

    assert run_agent.run_stage(bb, "preprocessing", paths, 0) == 2
    assert run_agent.run_stage(bb, "preprocessing", paths, 0) == 0

    assert bb.read_status("a", "preprocessing").message == "completed"
    assert bb.read_status("b", "preprocessing").message == "completed"
    assert "no file extension" in caplog.text


def test_run_stage_records_failures(run_agent, bb, data_files, monkeypatch):
    def broken(path, seconds):
        raise OSError("disk full")

    monkeypatch.setattr(run_agent, "busywork", broken)

    with pytest.raises(OSError):
        run_agent.run_stage(bb, "preprocessing", [str(data_files / "a.txt")], 0)

    assert bb.read_status("a", "preprocessing").message == "failed: OSError"


def test_main_runs_both_stages(run_agent, blackboard_dir, data_files, isolated_agent, tmp_path, capsys):
    base = ["run_agent.py", "--config", str(tmp_path / "absent.yaml"), "--blackboard", str(blackboard_dir)]
    isolated_agent.setattr(sys, "argv", base + ["--data", str(data_files / "*.txt"), "--work", "0"])

    assert run_agent.main() == 0

    bb = Blackboard(blackboard_dir)
    for item in ("a", "b"):
        for task in run_agent.STAGES:
            assert bb.read_status(item, task).message == "completed"

    isolated_agent.setattr(sys, "argv", base + ["--report"])
    capsys.readouterr()

    assert run_agent.main() == 0
    report = capsys.readouterr().out
    assert f"Blackboard {blackboard_dir}: 4 claimed" in report
    assert "postprocessing: 2" in report


def test_main_reports_lock_timeout(run_agent, blackboard_dir, data_files, isolated_agent, tmp_path):
    isolated_agent.setattr(
        sys,
        "argv",
        [
            "run_agent.py",
            "--config", str(tmp_path / "absent.yaml"),
            "--blackboard", str(blackboard_dir),
            "--data", str(data_files / "*.txt"),
            "--timeout", "0.2",
            "--work", "0",
        ],
    )
    holder = Blackboard(blackboard_dir)

    with holder.lock_manager.hold():
        assert run_agent.main() == 1

    assert list(blackboard_dir.glob("*.status")) == []
