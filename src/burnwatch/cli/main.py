"""
burnwatch command line interface.

Commands:
    burnwatch tiers                 - Show the service tier catalog
    burnwatch rules                 - Show MWMB rules and expected bad% at each threshold
    burnwatch replay <events-file>  - Replay recorded events and report alerts

Exit codes (replay):
    0 = no alerts
    1 = ticket-level or demo alerts fired
    2 = page-level alerts fired
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from itertools import groupby
from typing import Any, Sequence

from burnwatch import __version__
from burnwatch.cli.ux import (
    console,
    header,
    print_key_value,
    print_table,
    severity_badge,
    success,
    warning,
)
from burnwatch.config.settings import get_settings
from burnwatch.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from burnwatch.core.tiers import TIER_CONFIGS, normalize_tier
from burnwatch.logging import bind_context, configure_logging
from burnwatch.slos.engine import SLOEngine
from burnwatch.slos.ingest import load_events
from burnwatch.slos.models import EventCandidate
from burnwatch.slos.rules import TimeScale


class ReplayClock:
    """Clock pinned to the timestamp of the events being replayed."""

    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def _fmt_burn(value: float) -> str:
    if math.isinf(value):
        return "∞"
    return f"{value:.1f}x"


def _resolve_tier(tier: str | None) -> str:
    try:
        return normalize_tier(tier or get_settings().default_tier)
    except ValueError as e:
        raise ConfigurationError(str(e), {"tier": tier}) from e


def _resolve_scale(realtime: bool, hour_seconds: float | None) -> TimeScale:
    if realtime:
        return TimeScale.realtime()
    if hour_seconds is not None:
        if hour_seconds <= 0:
            raise ConfigurationError(
                "Hour length must be positive", {"hour_seconds": hour_seconds}
            )
        return TimeScale(hour_seconds=hour_seconds)
    return TimeScale(hour_seconds=get_settings().demo_hour_seconds)


# -------------------------------------------------------------------------
# Subcommand implementations
# -------------------------------------------------------------------------


def tiers_command(output_format: str = "table") -> int:
    """Show the service tier catalog."""
    if output_format == "json":
        data = [
            {
                "name": cfg.name,
                "description": cfg.description,
                "min_slo": cfg.min_slo,
                "latency_target_ms": cfg.latency_target_ms,
                "max_yearly_downtime": cfg.max_yearly_downtime,
                "incident_priority": cfg.incident_priority,
                "on_call": cfg.on_call,
                "mtta_minutes": cfg.mtta_minutes,
                "mttr_minutes": cfg.mttr_minutes,
                "mttc_hours": cfg.mttc_hours,
            }
            for cfg in TIER_CONFIGS.values()
        ]
        print(json.dumps(data, indent=2))
        return ExitCode.SUCCESS

    rows = [
        [
            cfg.name,
            f"{cfg.min_slo}%",
            f"{cfg.latency_target_ms:.0f} ms",
            cfg.max_yearly_downtime,
            cfg.incident_priority,
            cfg.on_call,
            f"{cfg.mtta_minutes}m / {cfg.mttr_minutes}m / {cfg.mttc_hours}h",
        ]
        for cfg in TIER_CONFIGS.values()
    ]
    print_table(
        "Service Tiers",
        ["Tier", "Min SLO", "Latency", "Max downtime/yr", "Incident", "On-call", "MTTA/MTTR/MTTC"],
        rows,
    )
    return ExitCode.SUCCESS


def rules_command(
    tier: str | None = None,
    target: float | None = None,
    lock_target: float | None = None,
    realtime: bool = False,
    hour_seconds: float | None = None,
    output_format: str = "table",
) -> int:
    """Show the MWMB rules with expected bad percentage at each threshold."""
    settings = get_settings()
    engine = SLOEngine(
        tier=_resolve_tier(tier),
        scale=_resolve_scale(realtime, hour_seconds),
        min_samples=settings.min_window_samples,
        auto_tier_presets=settings.auto_tier_presets,
    )
    if target is not None:
        engine.update_policy(availability_target=target)
    if lock_target is not None:
        engine.update_policy(lock_expected=True, locked_target=lock_target)

    policy = engine.policy
    rules = [
        {
            **rule.to_dict(),
            "expected_bad_percent": round(engine.expected_bad_percent(rule.threshold), 6),
        }
        for rule in engine.rules
    ]

    if output_format == "json":
        payload = {
            "tier": engine.tier,
            "auto_tier_presets": engine.auto_tier_presets,
            "policy": policy.to_dict(),
            "rules": rules,
        }
        print(json.dumps(payload, indent=2))
        return ExitCode.SUCCESS

    header(f"MWMB Rules: {engine.tier}")
    print_key_value(
        {
            "Availability target": f"{policy.availability_target}%",
            "Error budget": f"{policy.error_budget:.2f}%",
            "Expected uses": (
                f"{policy.expected_target}% ({'locked' if policy.lock_expected else 'follows current'})"
            ),
        }
    )
    console.print()
    print_table(
        "Window pairs",
        ["Rule", "Short", "Long", "Threshold", "Severity", "Min samples", "Expected bad%"],
        [
            [
                r["name"],
                f"{r['short_seconds']:g}s",
                f"{r['long_seconds']:g}s",
                f"{r['threshold']:g}x",
                severity_badge(r["severity"]),
                str(r["min_samples"]),
                f"{r['expected_bad_percent']:.2f}%",
            ]
            for r in rules
        ],
    )
    return ExitCode.SUCCESS


def replay_command(
    events_file: str,
    tier: str | None = None,
    bake_sli: bool | None = None,
    latency_target: float | None = None,
    availability_target: float | None = None,
    cpu_percent: float | None = None,
    realtime: bool = False,
    hour_seconds: float | None = None,
    output_format: str = "table",
    export_path: str | None = None,
) -> int:
    """
    Replay recorded events through the engine.

    Events are fed in timestamp order, one-second batch at a time, with the
    engine clock pinned to the batch so alerts fire as they would have live.
    """
    settings = get_settings()
    candidates = sorted(load_events(events_file), key=lambda c: c.timestamp_ms)

    clock = ReplayClock(candidates[0].timestamp_ms if candidates else 0)
    engine = SLOEngine(
        tier=_resolve_tier(tier),
        capacity=settings.history_capacity,
        scale=_resolve_scale(realtime, hour_seconds),
        demo_window_seconds=settings.demo_window_seconds,
        min_samples=settings.min_window_samples,
        auto_tier_presets=settings.auto_tier_presets,
        clock=clock,
    )

    changes: dict[str, Any] = {"bake_sli": settings.bake_sli if bake_sli is None else bake_sli}
    if latency_target is not None:
        changes["latency_target_ms"] = latency_target
    if availability_target is not None:
        changes["availability_target"] = availability_target
    engine.update_policy(**changes)
    if cpu_percent is not None:
        engine.set_saturation(cpu_percent)

    batches = groupby(candidates, key=lambda c: c.timestamp_ms // 1000)
    for _, batch in batches:
        events: list[EventCandidate] = list(batch)
        clock.now_ms = events[-1].timestamp_ms
        engine.ingest_many(events)

    if export_path:
        engine.history.export_json(export_path)

    alerts = engine.alerts
    bind_context(command="replay", events_file=events_file).info(
        "replay_completed",
        events=len(engine.history),
        alerts=len(alerts),
        open_alerts=sum(1 for a in alerts if a.is_open),
    )
    if output_format == "json":
        print(
            json.dumps(
                {
                    "tier": engine.tier,
                    "policy": engine.policy.to_dict(),
                    "events": len(engine.history),
                    "rules": [
                        {
                            "rule": row["rule"].label,
                            "short": row["short"].to_dict(),
                            "long": row["long"].to_dict(),
                            "expected_bad_percent": row["expected_bad_percent"],
                        }
                        for row in engine.rule_metrics()
                    ],
                    "demo_window": engine.demo_metrics().to_dict(),
                    "alerts": [
                        {**a.to_dict(), "within_target": engine.within_target(a.id)}
                        for a in alerts
                    ],
                },
                indent=2,
            )
        )
    else:
        if not candidates:
            warning(f"No events found in {events_file}")
        _print_replay_report(engine)
        if export_path:
            success(f"Exported {len(engine.history)} events to {export_path}")

    if any(a.is_open and a.type.is_page for a in alerts):
        return ExitCode.PAGE
    if any(a.is_open for a in alerts):
        return ExitCode.WARNING
    return ExitCode.SUCCESS


def _print_replay_report(engine: SLOEngine) -> None:
    policy = engine.policy
    header(f"Replay: {len(engine.history)} events ({engine.tier})")
    print_key_value(
        {
            "Availability target": f"{policy.availability_target}%",
            "Latency target": f"{policy.latency_target_ms:.0f} ms",
            "SLI baked": str(policy.bake_sli).lower(),
            "Saturation": f"{engine.saturation_percent:.0f}%",
        }
    )
    console.print()

    print_table(
        "Burn rates",
        ["Rule", "Short n", "Short bad%", "Short burn", "Long n", "Long bad%", "Long burn"],
        [
            [
                row["rule"].label,
                str(row["short"].total),
                f"{row['short'].bad_percent:.2f}%",
                _fmt_burn(row["short"].burn),
                str(row["long"].total),
                f"{row['long'].bad_percent:.2f}%",
                _fmt_burn(row["long"].burn),
            ]
            for row in engine.rule_metrics()
        ],
    )
    console.print()

    alerts = engine.alerts
    if not alerts:
        console.print("[green]No alerts fired.[/green]")
        return

    print_table(
        "Alerts (newest first)",
        ["Type", "Severity", "State", "Message"],
        [
            [a.type.value, severity_badge(a.severity.value), a.state.value, a.message]
            for a in alerts
        ],
    )


# -------------------------------------------------------------------------
# Parser
# -------------------------------------------------------------------------


def _add_scale_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Use real durations (1h = 3600s) instead of the demo time scale",
    )
    parser.add_argument(
        "--hour-seconds",
        type=float,
        help="Seconds of simulated time per hour (or set BURNWATCH_DEMO_HOUR_SECONDS)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="burnwatch",
        description="SLO compliance and multi-window multi-burn-rate alerting",
    )
    parser.add_argument("--version", action="version", version=f"burnwatch {__version__}")
    parser.add_argument("--log-level", help="Log level (or set BURNWATCH_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    tiers_parser = subparsers.add_parser("tiers", help="Show the service tier catalog")
    tiers_parser.add_argument("--output", choices=["table", "json"], default="table")

    rules_parser = subparsers.add_parser("rules", help="Show MWMB rules and expected bad%%")
    rules_parser.add_argument("--tier", help="Service tier (Tier-0 .. Tier-3)")
    rules_parser.add_argument("--target", type=float, help="Availability target override")
    rules_parser.add_argument(
        "--lock-target",
        type=float,
        help="Freeze expected bad%% calculations to this SLO target",
    )
    rules_parser.add_argument("--output", choices=["table", "json"], default="table")
    _add_scale_arguments(rules_parser)

    replay_parser = subparsers.add_parser("replay", help="Replay recorded events")
    replay_parser.add_argument("events_file", help="Events file (.json, .jsonl, .yaml)")
    replay_parser.add_argument("--tier", help="Service tier (Tier-0 .. Tier-3)")
    replay_parser.add_argument(
        "--no-bake",
        dest="bake_sli",
        action="store_false",
        default=None,
        help="Judge events on success only (ignore the latency target)",
    )
    replay_parser.add_argument("--latency-target", type=float, help="Latency target in ms")
    replay_parser.add_argument(
        "--availability-target", type=float, help="Availability target percentage"
    )
    replay_parser.add_argument("--cpu", type=float, help="CPU saturation percent")
    replay_parser.add_argument("--output", choices=["table", "json"], default="table")
    replay_parser.add_argument("--export", help="Write the classified history to this JSON file")
    _add_scale_arguments(replay_parser)

    return parser


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)

    if args.command == "tiers":
        return tiers_command(output_format=args.output)
    if args.command == "rules":
        return rules_command(
            tier=args.tier,
            target=args.target,
            lock_target=args.lock_target,
            realtime=args.realtime,
            hour_seconds=args.hour_seconds,
            output_format=args.output,
        )
    if args.command == "replay":
        return replay_command(
            args.events_file,
            tier=args.tier,
            bake_sli=args.bake_sli,
            latency_target=args.latency_target,
            availability_target=args.availability_target,
            cpu_percent=args.cpu,
            realtime=args.realtime,
            hour_seconds=args.hour_seconds,
            output_format=args.output,
            export_path=args.export,
        )

    parser.print_help()
    return ExitCode.SUCCESS


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
