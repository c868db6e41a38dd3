# src/rollbudget/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .compensation import calculate_weighted_deviation, get_compensated_target
from .config import DEFAULT_CONFIG, load_config
from .days import group_by_day
from .errors import ExitCode, InvalidInput, RollBudgetException, problem_to_dict
from .forecast import get_average_daily, get_forecast, get_upcoming_expirations
from .formatting import format_duration, format_time_until
from .recommend import get_recommendation
from .types import IntakeEvent, TrackerConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers: input loading + output formatting
# =============================================================================

def _print_payload(payload: Any, fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True, default=str))
    elif fmt == "jsonl":
        print(json.dumps(payload, ensure_ascii=False, sort_keys=True, default=str))
    else:
        # "text": caller prints human-friendly output
        pass


def _parse_timestamp(raw: Any, where: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidInput(
                "RB_EVENTS_BAD_TIMESTAMP",
                f"{where}: not an ISO-8601 timestamp: {raw!r}",
                details={"where": where, "value": raw},
                remediation="Use a timestamp like 2025-01-01T10:00:00.",
                cause=e,
            ) from e
    raise InvalidInput(
        "RB_EVENTS_BAD_TIMESTAMP",
        f"{where}: timestamp must be a string, got {type(raw).__name__}",
        details={"where": where, "type": type(raw).__name__},
    )


def _is_aware(ts: datetime) -> bool:
    return ts.tzinfo is not None and ts.utcoffset() is not None


def _require_same_tz_kind(events: List[IntakeEvent], now: Optional[datetime] = None) -> None:
    # naive and aware datetimes cannot be compared
    kinds = {_is_aware(e.occurred_at) for e in events}
    if now is not None:
        kinds.add(_is_aware(now))
    if len(kinds) > 1:
        raise InvalidInput(
            "RB_EVENTS_MIXED_TZ",
            "Timestamps mix zone-aware and naive values",
            details={"aware_now": None if now is None else _is_aware(now)},
            remediation="Give every timestamp (including --now) a UTC offset, or none of them.",
        )


def _to_events(obj: Any) -> List[IntakeEvent]:
    """
    Build IntakeEvents from a parsed events file.

    Accepted shapes:
      [{"occurred_at": "...", "value": 250}, ...]
      {"events": [...]}
    ``created_at`` / ``createdAt`` are accepted for ``occurred_at``.
    """
    if isinstance(obj, dict):
        obj = obj.get("events", [])
    if obj is None:
        return []
    if not isinstance(obj, list):
        raise InvalidInput(
            "RB_EVENTS_NOT_A_LIST",
            f"Events must be a list, got {type(obj).__name__}",
            details={"type": type(obj).__name__},
            remediation='Provide a list of {"occurred_at": ..., "value": ...} objects.',
        )

    events: List[IntakeEvent] = []
    for i, raw in enumerate(obj):
        where = f"events[{i}]"
        if not isinstance(raw, dict):
            raise InvalidInput(
                "RB_EVENTS_ITEM_NOT_OBJECT",
                f"{where} must be an object",
                details={"where": where, "type": type(raw).__name__},
            )
        ts = raw.get("occurred_at", raw.get("created_at", raw.get("createdAt")))
        if ts is None:
            raise InvalidInput(
                "RB_EVENTS_MISSING_TIMESTAMP",
                f"{where}: missing occurred_at",
                details={"where": where},
            )
        value = raw.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInput(
                "RB_EVENTS_BAD_VALUE",
                f"{where}: value must be a number",
                details={"where": where, "value": repr(value)},
            )
        events.append(IntakeEvent(occurred_at=_parse_timestamp(ts, where), value=float(value)))
    _require_same_tz_kind(events)
    return events


def _load_events(path: str) -> List[IntakeEvent]:
    p = Path(path)
    if not p.exists():
        raise InvalidInput(
            "RB_EVENTS_NOT_FOUND",
            f"Events file not found: {path}",
            details={"path": path},
            remediation="Verify the path is correct and the file exists.",
        )
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidInput(
            "RB_EVENTS_PARSE_ERROR",
            f"Failed to parse events file: {path}",
            details={"path": path, "error": repr(e)},
            remediation="Ensure the file is valid YAML or JSON encoded in UTF-8.",
            cause=e,
        ) from e
    events = _to_events(obj)
    logger.debug("loaded %d events from %s", len(events), path)
    return events


def _config_from_args(args: argparse.Namespace) -> TrackerConfig:
    path = getattr(args, "config", None)
    return load_config(path) if path else DEFAULT_CONFIG


def _now_from_args(args: argparse.Namespace, events: List[IntakeEvent]) -> datetime:
    if getattr(args, "now", None):
        now = _parse_timestamp(args.now, "--now")
        _require_same_tz_kind(events, now)
        return now
    # follow the events' convention
    if any(_is_aware(e.occurred_at) for e in events):
        return datetime.now(timezone.utc)
    return datetime.now()


def _fmt_amount(x: float) -> str:
    return f"{x:.0f}"


# =============================================================================
# Commands
# =============================================================================

def cmd_validate_config(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    if args.format in ("json", "jsonl"):
        _print_payload({"ok": True, "config": cfg.to_dict()}, args.format)
    else:
        print("OK: config is valid")
    return 0


def cmd_recommend(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    cfg = _config_from_args(args)
    now = _now_from_args(args, events)
    rec = get_recommendation(events, now, cfg)

    if args.format in ("json", "jsonl"):
        _print_payload(rec.to_dict(), args.format)
        return 0

    unit = cfg.unit_label
    print(f"Consumed (24h):  {_fmt_amount(rec.consumed_last_24h)} {unit} ({rec.percent_used:.0f}%)")
    print(f"Remaining (24h): {_fmt_amount(rec.remaining_last_24h)} {unit}")
    print(f"Target:          {_fmt_amount(rec.effective_target)} {unit} (base {_fmt_amount(rec.base_target)})")
    print(f"Next event:      {_fmt_amount(rec.recommended_min)}-{_fmt_amount(rec.recommended_max)} {unit}")
    if rec.hours_since_last_event is not None:
        print(f"Since last:      {format_duration(rec.hours_since_last_event)}")
    if rec.wait_until is not None:
        print(f"Wait:            {format_time_until(rec.wait_until, now)}")
    print(rec.reasoning)
    print(rec.compensation.reason)
    return 0


def cmd_compensation(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    cfg = _config_from_args(args)
    now = _now_from_args(args, events)
    result = get_compensated_target(events, now, cfg)
    analysis = calculate_weighted_deviation(events, now, cfg)

    if args.format in ("json", "jsonl"):
        payload: Dict[str, Any] = result.to_dict()
        payload["weighted_deviation"] = analysis.weighted_deviation
        payload["total_weight"] = analysis.total_weight
        payload["periods"] = [p.to_dict() for p in analysis.periods]
        _print_payload(payload, args.format)
        return 0

    print(f"Adjusted target: {_fmt_amount(result.adjusted_target)} {cfg.unit_label}")
    print(result.reason)
    print("\n== Periods ==")
    for p in analysis.periods:
        print(
            f"- {p.hours_ago:>4.0f}h ago  consumed={p.consumed_amount:.0f}  expected={p.expected_amount:.0f}  "
            f"dev={p.deviation:+.0f}  w={p.weight:.3f}"
        )
    return 0


def cmd_forecast(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    cfg = _config_from_args(args)
    now = _now_from_args(args, events)
    points = get_forecast(events, now, cfg, hours=args.hours, step_hours=args.step)

    if args.format in ("json", "jsonl"):
        _print_payload([p.to_dict() for p in points], args.format)
        return 0

    for p in points:
        print(f"{p.time.isoformat()}  {_fmt_amount(p.available_budget)} {cfg.unit_label}")
    return 0


def cmd_expiring(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    now = _now_from_args(args, events)
    expiring = get_upcoming_expirations(events, now, within_hours=args.within)

    if args.format in ("json", "jsonl"):
        _print_payload([x.to_dict() for x in expiring], args.format)
        return 0

    if not expiring:
        print(f"Nothing expires in the next {args.within:g}h")
    for x in expiring:
        print(f"{_fmt_amount(x.event.value):>6}  frees up {format_time_until(x.expires_at, now)}")
    return 0


def cmd_average(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    now = _now_from_args(args, events)
    avg = get_average_daily(events, now, days=args.days)

    if args.format in ("json", "jsonl"):
        _print_payload({"days": args.days, "average_daily": avg}, args.format)
    else:
        print(f"Average over {args.days:g} day(s): {avg:.1f}")
    return 0


def cmd_days(args: argparse.Namespace) -> int:
    events = _load_events(args.events)
    days = group_by_day(events)

    if args.format in ("json", "jsonl"):
        _print_payload([d.to_dict() for d in days], args.format)
        return 0

    for d in days:
        print(f"{d.date}  total={_fmt_amount(d.total)}  events={len(d.events)}")
    return 0


# =============================================================================
# Parser + entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rollbudget", description="Rolling 24h consumption budget")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="cmd")

    def common(p: argparse.ArgumentParser, *, events: bool = True, config: bool = True, now: bool = True) -> None:
        if events:
            p.add_argument("--events", required=True, help="YAML/JSON events file")
        if config:
            p.add_argument("--config", help="YAML/JSON tracker config (defaults if omitted)")
        if now:
            p.add_argument("--now", help="ISO-8601 evaluation time (default: current time)")
        p.add_argument("--format", choices=["text", "json", "jsonl"], default="text")

    p = sub.add_parser("validate-config", help="Validate a tracker config file")
    p.add_argument("--config", required=True)
    p.add_argument("--format", choices=["text", "json", "jsonl"], default="text")
    p.set_defaults(func=cmd_validate_config)

    p = sub.add_parser("recommend", help="Recommend the next event size")
    common(p)
    p.set_defaults(func=cmd_recommend)

    p = sub.add_parser("compensation", help="Show the compensated target and period breakdown")
    common(p)
    p.set_defaults(func=cmd_compensation)

    p = sub.add_parser("forecast", help="Project available budget over the next hours")
    common(p)
    p.add_argument("--hours", type=float, default=12)
    p.add_argument("--step", type=float, default=2)
    p.set_defaults(func=cmd_forecast)

    p = sub.add_parser("expiring", help="List events leaving the 24h window soon")
    common(p, config=False)
    p.add_argument("--within", type=float, default=6)
    p.set_defaults(func=cmd_expiring)

    p = sub.add_parser("average", help="Average daily consumption")
    common(p, config=False)
    p.add_argument("--days", type=float, default=7)
    p.set_defaults(func=cmd_average)

    p = sub.add_parser("days", help="Group events by calendar day")
    common(p, config=False, now=False)
    p.set_defaults(func=cmd_days)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point used by the console script: `from rollbudget.cli import main`.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not getattr(args, "cmd", None):
        parser.print_help()
        return 2

    try:
        return int(args.func(args))
    except RollBudgetException as e:
        payload = {"ok": False, "error": problem_to_dict(e.problem), "exit_code": int(e.exit_code)}
        fmt = getattr(args, "format", "text")
        if fmt in ("json", "jsonl"):
            _print_payload(payload, fmt)
        else:
            err = payload["error"]
            print(f"ERROR[{err.get('code', 'RB_ERROR')}]: {err.get('message')}", file=sys.stderr)
            if err.get("remediation"):
                print(f"REMEDIATION: {err['remediation']}", file=sys.stderr)
            print(f"DETAILS: {err.get('details', {})}", file=sys.stderr)
        return int(e.exit_code)
    except Exception as e:
        logger.exception("unexpected failure in %s", args.cmd)
        print(f"ERROR[RB_INTERNAL_ERROR]: {e!r}", file=sys.stderr)
        return int(ExitCode.INTERNAL_ERROR)


if __name__ == "__main__":
    sys.exit(main())
