"""Interactive prompting and exit codes of the command-line entry point."""

from unittest.mock import Mock

import pytest
import yaml

import app.cli as cli
from app.pipeline import PipelineOutcome, PipelineState
from configs.settings import DEFAULT_CONFIG_PATH, load_config
from contracts import CalibrationResult
from exceptions import CalibrationSolverError, DeviceUnavailableError, FileWriteError


def _answers(*values):
    replies = iter(values)
    return lambda prompt: next(replies)


@pytest.fixture
def config_path(tmp_path):
    data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text())
    data["logging"]["log_dir"] = None
    data["output"]["directory"] = str(tmp_path / "out")
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_prompt_defaults_on_empty_input() -> None:
    config = load_config(DEFAULT_CONFIG_PATH)

    geometry, target = cli.prompt_session(config, _answers("", "", "", ""))

    assert geometry.corner_grid == (6, 9)
    assert geometry.square_size == 0.03
    assert target == 20


def test_prompt_reasks_on_invalid_input(capsys) -> None:
    config = load_config(DEFAULT_CONFIG_PATH)

    geometry, target = cli.prompt_session(
        config,
        _answers("abc", "-1", "0.025", "1", "7", "x", "5", "10", "18"),
    )

    assert geometry.square_size == 0.025
    assert geometry.corner_grid == (7, 5)
    assert target == 18
    out = capsys.readouterr().out
    assert "not a number" in out
    assert "at least 15" in out


def test_build_pipeline_wires_config(config_path) -> None:
    config = load_config(config_path)
    geometry, target = cli.prompt_session(config, _answers("", "", "", "16"))

    pipeline = cli.build_pipeline(config, geometry, target, device=Mock(), presenter=Mock(), decisions=Mock())

    ctx = pipeline.context
    assert ctx.target_count == 16
    assert ctx.camera_serial == "0"
    assert ctx.calibrator.min_frames == 15
    assert ctx.exporter.directory == cli.Path(config.output.directory)


def _result():
    return CalibrationResult(
        camera_matrix=[[800.0, 0.0, 320.0], [0.0, 800.0, 240.0], [0.0, 0.0, 1.0]],
        distortion_coefficients=(0.0,) * 5,
        reprojection_error=0.2,
        frames_used=16,
    )


@pytest.mark.parametrize(
    "outcome, expected",
    [
        (PipelineOutcome(state=PipelineState.DONE, result=_result()), cli.EXIT_OK),
        (PipelineOutcome(state=PipelineState.CANCELLED), cli.EXIT_OK),
        (
            PipelineOutcome(state=PipelineState.FAILED, error=DeviceUnavailableError("no camera"), stage="device"),
            cli.EXIT_DEVICE_UNAVAILABLE,
        ),
        (
            PipelineOutcome(state=PipelineState.FAILED, error=CalibrationSolverError("diverged"), stage="calibration"),
            cli.EXIT_CALIBRATION_FAILED,
        ),
        (
            PipelineOutcome(state=PipelineState.FAILED, error=FileWriteError("disk full"), stage="export"),
            cli.EXIT_CONFIG_OR_OUTPUT_ERROR,
        ),
    ],
)
def test_main_exit_codes(monkeypatch, config_path, outcome, expected) -> None:
    pipeline = Mock()
    pipeline.run.return_value = outcome
    monkeypatch.setattr(cli, "build_pipeline", Mock(return_value=pipeline))

    assert cli.main(config_path, _answers("", "", "", "")) == expected
    assert pipeline.run.call_count == 1


def test_main_reports_bad_config(tmp_path) -> None:
    assert cli.main(tmp_path / "missing.yaml", _answers()) == cli.EXIT_CONFIG_OR_OUTPUT_ERROR


def test_main_treats_eof_as_cancel(monkeypatch, config_path) -> None:
    def _eof(prompt):
        raise EOFError

    build = Mock()
    monkeypatch.setattr(cli, "build_pipeline", build)

    assert cli.main(config_path, _eof) == cli.EXIT_OK
    assert build.call_count == 0


def test_main_treats_interrupt_during_run_as_cancel(monkeypatch, config_path, capsys) -> None:
    pipeline = Mock()
    pipeline.run.side_effect = KeyboardInterrupt
    monkeypatch.setattr(cli, "build_pipeline", Mock(return_value=pipeline))

    assert cli.main(config_path, _answers("", "", "", "")) == cli.EXIT_OK
    assert "Cancelled" in capsys.readouterr().out
