"""Tests for the deployx command line."""

import logging
import sys

import pytest
import yaml
from typer.testing import CliRunner

from runner.src.config import get_settings
from runner.src.main import app

cli = CliRunner()

def python(code):
    return [sys.executable, "-c", code]

@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    monkeypatch.delenv("DEPLOYX_REDIS_URL", raising=False)
    get_settings.cache_clear()
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    get_settings.cache_clear()
    root.handlers[:] = handlers
    root.setLevel(level)

@pytest.fixture
def pipeline_file(tmp_path):
    definition = {
        "name": "Greeter",
        "parameters": [
            {"name": "GREETING", "default": "hi"},
            {"name": "FAIL", "type": "boolean", "default": False},
        ],
        "stages": [
            {"name": "Greet", "steps": [
                {"name": "Write greeting", "run": python("open('greeting.txt', 'w').write('${GREETING}')")},
            ]},
            {"name": "Maybe fail", "when": {"param": "FAIL", "equals": True}, "steps": [
                {"name": "Exit", "run": python("import sys; sys.exit(3)")},
            ]},
        ],
        "post": {
            "failure": [{"name": "Mark failure", "run": python("open('failed.txt', 'w').write('yes')")}],
            "always": [{"name": "Mark done", "run": python("open('done.txt', 'w').write('yes')")}],
        },
    }
    path = tmp_path / "pipeline.yml"
    path.write_text(yaml.safe_dump(definition))
    return path

def test_run_yaml_pipeline(pipeline_file, tmp_path):
    result = cli.invoke(app, ["run", "-f", str(pipeline_file), "-w", str(tmp_path), "-p", "GREETING=hello"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "greeting.txt").read_text() == "hello"
    assert (tmp_path / "done.txt").exists()
    assert not (tmp_path / "failed.txt").exists()

def test_failing_run_exits_1(pipeline_file, tmp_path):
    result = cli.invoke(app, ["run", "-f", str(pipeline_file), "-w", str(tmp_path), "-p", "FAIL=true"])

    assert result.exit_code == 1
    assert (tmp_path / "failed.txt").exists()
    assert (tmp_path / "done.txt").exists()

def test_unknown_parameter_exits_2(pipeline_file, tmp_path):
    result = cli.invoke(app, ["run", "-f", str(pipeline_file), "-w", str(tmp_path), "-p", "NOPE=1"])

    assert result.exit_code == 2
    assert not (tmp_path / "done.txt").exists()

def test_invalid_boolean_exits_2(pipeline_file, tmp_path):
    result = cli.invoke(app, ["run", "-f", str(pipeline_file), "-w", str(tmp_path), "-p", "FAIL=maybe"])
    assert result.exit_code == 2

def test_malformed_override_exits_2(pipeline_file, tmp_path):
    result = cli.invoke(app, ["run", "-f", str(pipeline_file), "-w", str(tmp_path), "-p", "GREETING"])
    assert result.exit_code == 2

def test_dry_run_of_builtin_pipeline(tmp_path):
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")

    result = cli.invoke(app, ["run", "-w", str(tmp_path), "--dry-run", "-p", "SKIP_HEALTH_CHECK=true"])

    assert result.exit_code == 0, result.output
    assert "APP_ENV=production" in (tmp_path / ".env").read_text()

def test_params_lists_builtin_parameters():
    result = cli.invoke(app, ["params"])

    assert result.exit_code == 0
    assert "compose-deploy" in result.output
    assert "DEPLOY_ENV" in result.output

def test_params_of_yaml_pipeline(pipeline_file):
    result = cli.invoke(app, ["params", "-f", str(pipeline_file)])

    assert result.exit_code == 0
    assert "GREETING" in result.output
    assert "boolean" in result.output

def test_validate_ok(pipeline_file):
    result = cli.invoke(app, ["validate", "-f", str(pipeline_file)])

    assert result.exit_code == 0
    assert "Greeter: 2 stages, 2 steps, 2 parameters" in result.output

def test_validate_invalid(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("name: Bad\n")

    result = cli.invoke(app, ["validate", "-f", str(path)])

    assert result.exit_code == 1
    assert "Invalid pipeline" in result.output
