"""Tests for the command-line runner."""

import json

import httpx
import pytest

import loadengine.cli as cli
from loadengine.config import Settings
from loadengine.engine.config import StressProfileConfig
from loadengine.engine.errors import ProfileConfigError


@pytest.fixture
def mock_target(monkeypatch):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200)

    def fake_client(timeout_seconds: float, max_connections: int) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(cli, "build_http_client", fake_client)
    return requests


def _settings() -> Settings:
    return Settings(base_url="http://testserver/health")


class TestBuildProfileConfig:
    def test_yaml_then_flags(self, tmp_path) -> None:
        path = tmp_path / "stress.yaml"
        path.write_text(
            "max_actors: 20\nstep_size: 5\nstep_duration_seconds: 1\n"
            "max_duration_seconds: 60\nerror_threshold: 30\n"
        )
        args = cli.build_parser().parse_args(
            ["stress", "--config", str(path), "--error-threshold", "40"]
        )
        cfg = cli.build_profile_config(args, _settings())
        assert isinstance(cfg, StressProfileConfig)
        assert cfg.max_actors == 20
        assert cfg.error_threshold == 40
        assert cfg.breaking_point_error_rate == 5.0

    def test_missing_options(self) -> None:
        args = cli.build_parser().parse_args(["load", "--actors", "2"])
        with pytest.raises(ProfileConfigError, match="duration_seconds"):
            cli.build_profile_config(args, _settings())

    def test_endurance_pacing_from_settings(self) -> None:
        args = cli.build_parser().parse_args(
            ["endurance", "--actors", "1", "--duration-hours", "1", "--monitoring-interval", "5"]
        )
        settings = Settings(endurance_pacing_ms=250)
        assert cli.build_profile_config(args, settings).pacing_ms == 250


class TestMain:
    def test_load_run_writes_json(self, mock_target, tmp_path) -> None:
        output = tmp_path / "out" / "load.json"
        code = cli.main(
            [
                "load",
                "--duration", "0.2",
                "--actors", "2",
                "--header", "X-Run: 1",
                "--output", str(output),
                "--log-level", "WARNING",
            ],
            settings=_settings(),
        )
        assert code == cli.EXIT_OK
        data = json.loads(output.read_text())
        assert data["test_type"] == "load"
        assert data["total_requests"] == len(mock_target)
        assert data["error_rate"] == 0.0
        assert mock_target[0].headers["x-run"] == "1"
        assert str(mock_target[0].url) == "http://testserver/health"

    def test_spike_run_prints_json(self, mock_target, capsys) -> None:
        code = cli.main(
            [
                "spike",
                "--url", "http://testserver/api",
                "--method", "POST",
                "--json-body", '{"k": 1}',
                "--base-actors", "1",
                "--spike-actors", "2",
                "--base-duration", "0.1",
                "--spike-duration", "0.1",
                "--recovery-duration", "0.1",
                "--log-level", "WARNING",
            ],
            settings=_settings(),
        )
        assert code == cli.EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert [p["phase"] for p in data["results"]] == ["base", "spike", "recovery"]
        assert mock_target[0].method == "POST"

    def test_invalid_configuration_exits_with_error(self, mock_target) -> None:
        code = cli.main(
            ["load", "--duration", "0", "--actors", "2", "--log-level", "WARNING"],
            settings=_settings(),
        )
        assert code == cli.EXIT_RUN_ERROR
        assert mock_target == []

    def test_bad_header(self, mock_target) -> None:
        code = cli.main(
            [
                "load", "--duration", "0.1", "--actors", "1",
                "--header", "no-colon", "--log-level", "WARNING",
            ],
            settings=_settings(),
        )
        assert code == cli.EXIT_RUN_ERROR

    def test_fractional_step_size_in_yaml_exits_with_error(self, mock_target, tmp_path) -> None:
        path = tmp_path / "stress.yaml"
        path.write_text(
            "max_actors: 20\nstep_size: 2.5\nstep_duration_seconds: 0.1\n"
            "max_duration_seconds: 5\nerror_threshold: 30\n"
        )
        code = cli.main(
            ["stress", "--config", str(path), "--log-level", "WARNING"],
            settings=_settings(),
        )
        assert code == cli.EXIT_RUN_ERROR
        assert mock_target == []

    def test_nan_duration_exits_with_error(self, mock_target) -> None:
        code = cli.main(
            ["load", "--duration", "nan", "--actors", "2", "--log-level", "WARNING"],
            settings=_settings(),
        )
        assert code == cli.EXIT_RUN_ERROR
        assert mock_target == []
