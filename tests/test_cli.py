import logging

import pytest
import toml
from click.testing import CliRunner

from notifyrun import cli


@pytest.fixture(autouse=True)
def reset_notifyrun_logger():
    yield
    logger = logging.getLogger("notifyrun")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def temp_config(tmp_path):
    config_data = {
        "watch": {
            "paths": [str(tmp_path)],
            "exec": "make build",
            "ignore_events": ["CHMOD"],
        },
    }
    config_file = tmp_path / "notifyrun.toml"
    with open(config_file, "w") as f:
        toml.dump(config_data, f)
    return str(config_file)


def test_show_config(temp_config):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--config", temp_config, "show-config"])
    assert result.exit_code == 0
    assert "make build" in result.output
    assert "CHMOD" in result.output


def test_kinds():
    runner = CliRunner()
    result = runner.invoke(cli.main, ["kinds"])
    assert result.exit_code == 0
    for kind in ("CREATE", "WRITE", "REMOVE", "RENAME", "CHMOD"):
        assert kind in result.output


def test_missing_config_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--config", str(tmp_path / "nope.toml"), "kinds"])
    assert result.exit_code == 1
    assert "Error loading configuration" in result.output


def test_run_requires_exec(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["run", str(tmp_path)])
    assert result.exit_code == 2
    assert "must select an action type" in result.output


def test_run_requires_paths(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["run", "--exec", "make build"])
    assert result.exit_code == 1
    assert "must specify files/directories to watch" in result.output


def test_run_rejects_unparseable_command(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["run", "--exec", 'make "build', str(tmp_path)])
    assert result.exit_code == 1
    assert "Unable to parse command" in result.output


def test_run_fails_on_missing_path(temp_config, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["--config", temp_config, "run", str(tmp_path / "missing")]
    )
    assert result.exit_code == 1
    assert "Cannot watch" in result.output
