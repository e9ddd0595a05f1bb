"""Command-line runner for the load engine.

Usage:
    python -m loadengine load --url http://localhost:8000/health --duration 60 --actors 10
    python -m loadengine stress --url http://localhost:8000/api --max-actors 50 --step-size 5 \
        --step-duration 30 --max-duration 600 --error-threshold 20
    python -m loadengine spike --config profiles/spike.yaml --output results/spike.json
    python -m loadengine endurance --url http://localhost:8000/api --actors 5 \
        --duration-hours 2 --monitoring-interval 5

Profile options can be read from a YAML mapping with ``--config``; flags on
the command line override values from the file.
"""

import argparse
import json
import sys
from dataclasses import MISSING, fields
from pathlib import Path
from typing import Any

import structlog
import yaml

from loadengine.config import Settings
from loadengine.engine.config import (
    EnduranceProfileConfig,
    LoadProfileConfig,
    SpikeProfileConfig,
    StressProfileConfig,
)
from loadengine.engine.errors import ProfileConfigError, SchedulingError
from loadengine.engine.models import (
    EnduranceTestResult,
    LoadTestResult,
    ProfileResult,
    SpikeTestResult,
    StressTestResult,
)
from loadengine.engine.profiles import EnduranceProfile, LoadProfile, SpikeProfile, StressProfile
from loadengine.operations import build_http_client, http_operation
from loadengine.shared.logging import setup_logging

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_RUN_ERROR = 2

PROFILES: dict[str, tuple[type, type]] = {
    "load": (LoadProfileConfig, LoadProfile),
    "stress": (StressProfileConfig, StressProfile),
    "spike": (SpikeProfileConfig, SpikeProfile),
    "endurance": (EnduranceProfileConfig, EnduranceProfile),
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--url", type=str, default=None, help="Target URL (default: base_url).")
    parser.add_argument("--method", type=str, default="GET", help="HTTP method (default: GET).")
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra request header; may be repeated.",
    )
    parser.add_argument("--json-body", type=str, default=None, help="JSON request body.")
    parser.add_argument(
        "--max-connections",
        type=int,
        default=200,
        help="Maximum pooled HTTP connections (default: 200).",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML file of profile options.")
    parser.add_argument("--output", type=str, default=None, help="Write JSON results here.")
    parser.add_argument("--log-level", type=str, default=None, help="Override log level.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadengine",
        description="Run a load, stress, spike or endurance profile against an HTTP endpoint.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="profile", required=True)

    load = sub.add_parser("load", help="Steady load.")
    load.add_argument("--duration", dest="duration_seconds", type=float)
    load.add_argument("--actors", type=int)
    load.add_argument("--ramp-up", dest="ramp_up_seconds", type=float)
    load.add_argument("--pacing-ms", dest="pacing_ms", type=float)

    stress = sub.add_parser("stress", help="Escalating load to find the breaking point.")
    stress.add_argument("--max-actors", dest="max_actors", type=int)
    stress.add_argument("--step-size", dest="step_size", type=int)
    stress.add_argument("--step-duration", dest="step_duration_seconds", type=float)
    stress.add_argument("--max-duration", dest="max_duration_seconds", type=float)
    stress.add_argument("--error-threshold", dest="error_threshold", type=float)
    stress.add_argument(
        "--breaking-point-error-rate",
        dest="breaking_point_error_rate",
        type=float,
        help="Error rate (%%) at which a step counts as broken.",
    )

    spike = sub.add_parser("spike", help="Base load, sudden spike, recovery.")
    spike.add_argument("--base-actors", dest="base_actors", type=int)
    spike.add_argument("--spike-actors", dest="spike_actors", type=int)
    spike.add_argument("--base-duration", dest="base_duration_seconds", type=float)
    spike.add_argument("--spike-duration", dest="spike_duration_seconds", type=float)
    spike.add_argument("--recovery-duration", dest="recovery_duration_seconds", type=float)

    endurance = sub.add_parser("endurance", help="Long-duration paced load.")
    endurance.add_argument("--actors", type=int)
    endurance.add_argument("--duration-hours", dest="duration_hours", type=float)
    endurance.add_argument(
        "--monitoring-interval", dest="monitoring_interval_minutes", type=float
    )
    endurance.add_argument("--pacing-ms", dest="pacing_ms", type=float)

    for subparser in (load, stress, spike, endurance):
        _add_common_arguments(subparser)
    return parser


# ---------------------------------------------------------------------------
# Config assembly
# ---------------------------------------------------------------------------


def load_options(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ProfileConfigError(f"{path} must contain a mapping of profile options")
    return data


def build_profile_config(args: argparse.Namespace, settings: Settings) -> Any:
    """Merge settings defaults, the YAML file and CLI flags into a profile config."""
    config_cls, _ = PROFILES[args.profile]
    options: dict[str, Any] = {}
    if args.profile == "stress":
        options["breaking_point_error_rate"] = settings.breaking_point_error_rate
    elif args.profile == "endurance":
        options["pacing_ms"] = settings.endurance_pacing_ms

    options.update(load_options(args.config))
    for f in fields(config_cls):
        value = getattr(args, f.name, None)
        if value is not None:
            options[f.name] = value

    missing = [
        f.name
        for f in fields(config_cls)
        if f.name not in options and f.default is MISSING and f.default_factory is MISSING
    ]
    if missing:
        raise ProfileConfigError(f"missing {args.profile} option(s): {', '.join(missing)}")
    return config_cls.from_dict(options)


def _parse_headers(raw: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise ProfileConfigError(f"invalid header {item!r}, expected NAME:VALUE")
        headers[name.strip()] = value.strip()
    return headers


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_summary(result: ProfileResult) -> None:
    """Human-readable summary printed to stderr."""
    line = "-" * 60
    out = sys.stderr
    print(f"\n{line}", file=out)
    print(f"  {result.test_type.upper()} TEST RESULTS SUMMARY", file=out)
    print(line, file=out)

    if isinstance(result, LoadTestResult):
        print(f"  Total requests: {result.total_requests}", file=out)
        print(f"  Error rate:     {result.error_rate:.2f}%", file=out)
        print(f"  Avg latency:    {result.avg_response_time_ms:.2f} ms", file=out)
        print(
            f"  Min / Max:      {result.min_response_time_ms:.2f} / "
            f"{result.max_response_time_ms:.2f} ms",
            file=out,
        )
        print(f"  Throughput:     {result.throughput:.2f} req/s", file=out)
    elif isinstance(result, StressTestResult):
        print(f"\n  {'Actors':>8} {'Avg (ms)':>10} {'Errors %':>10} {'Count':>8}", file=out)
        print(f"  {'-'*8} {'-'*10} {'-'*10} {'-'*8}", file=out)
        for step in result.results:
            print(
                f"  {step.actors:>8} {step.avg_response_time_ms:>10.2f} "
                f"{step.error_rate:>10.2f} {step.total_requests:>8}",
                file=out,
            )
        print(f"\n  Breaking point: {result.breaking_point} actors", file=out)
        print(f"  Stopped by:     {result.stop_reason}", file=out)
    elif isinstance(result, SpikeTestResult):
        print(f"\n  {'Phase':<10} {'Actors':>8} {'Avg (ms)':>10} {'Errors %':>10}", file=out)
        print(f"  {'-'*10} {'-'*8} {'-'*10} {'-'*10}", file=out)
        for phase in result.results:
            print(
                f"  {phase.phase:<10} {phase.actors:>8} "
                f"{phase.avg_response_time_ms:>10.2f} {phase.error_rate:>10.2f}",
                file=out,
            )
        if result.recovery_latency_ratio is not None:
            print(f"\n  Recovery/base latency: {result.recovery_latency_ratio:.2f}x", file=out)
    elif isinstance(result, EnduranceTestResult):
        print(f"  Snapshots:      {len(result.monitoring_data)}", file=out)
        print(f"  Avg latency:    {result.avg_response_time_ms:.2f} ms", file=out)
        print(f"  Peak latency:   {result.max_response_time_ms:.2f} ms", file=out)
        print(f"  Avg error rate: {result.avg_error_rate:.2f}%", file=out)

    print(f"{line}\n", file=out)


def write_result(result: ProfileResult, output: str | None) -> None:
    payload = json.dumps(result.model_dump(mode="json"), indent=2)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload)
        logger.info("results_written", path=str(path))
    else:
        print(payload)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or Settings()
    setup_logging(args.log_level or settings.log_level, json_logs=settings.log_json)

    try:
        config = build_profile_config(args, settings)
        headers = _parse_headers(args.header)
        body = json.loads(args.json_body) if args.json_body else None
    except (ProfileConfigError, TypeError, json.JSONDecodeError, OSError, yaml.YAMLError) as exc:
        logger.error("invalid_configuration", profile=args.profile, error=str(exc))
        return EXIT_RUN_ERROR

    _, profile_cls = PROFILES[args.profile]
    url = args.url or settings.base_url
    request_kwargs: dict[str, Any] = {"headers": headers}
    if body is not None:
        request_kwargs["json"] = body

    with build_http_client(settings.http_timeout_seconds, args.max_connections) as client:
        operation = http_operation(client, args.method, url, **request_kwargs)
        try:
            result = profile_cls(config).run(operation)
        except SchedulingError as exc:
            logger.error("profile_run_aborted", profile=args.profile, error=str(exc))
            return EXIT_RUN_ERROR

    _print_summary(result)
    write_result(result, args.output)
    return EXIT_OK
