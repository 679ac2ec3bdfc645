"""
Daily hand-hygiene statistics.

Pipeline: raw log text → Events → today's filter, unique workers, latest event
→ compliance percent and tier.

- "Today" is a lexical match: an event belongs to today when the text before
  the first space of its timestamp equals today's local date as YYYY-MM-DD.
- The latest event is taken over all events, not just today's; on equal times
  the first one encountered wins.
- Today's events are returned most recent first.

Everything here is synchronous and side-effect free apart from logging.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from compliance import present_compliance
from config import NO_ACTIVITY, NO_WORKER, get_logger, load_settings
from errors import HygieneDashboardError
from hygiene_log import parse_events
from source import fetch_source_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class DailyStats:
    today_count: int
    last_worker: str
    last_timestamp_raw: str
    today_events: tuple


def local_today(now=None):
    """Today's local wall-clock date as YYYY-MM-DD."""
    now = now or datetime.now()
    return now.strftime("%Y-%m-%d")


def aggregate_daily(events, today):
    """
    Single pass over events.

    Returns DailyStats with today's distinct-worker count, today's events in
    encounter order, and the globally most recent event (sentinels if none).
    """
    workers_today = set()
    today_events = []
    latest = None

    for event in events:
        if event.date_part == today:
            today_events.append(event)
            workers_today.add(event.worker_name)

        if latest is None or event.epoch_millis > latest.epoch_millis:
            latest = event

    return DailyStats(
        today_count=len(workers_today),
        last_worker=latest.worker_name if latest else NO_WORKER,
        last_timestamp_raw=latest.timestamp_raw if latest else NO_ACTIVITY,
        today_events=tuple(today_events),
    )


def sort_today_events(events):
    """Most recent first. Ties keep their original order."""
    return sorted(events, key=lambda e: e.epoch_millis, reverse=True)


def run_pipeline(text, today, total_estimate):
    """
    Full pipeline for one refresh cycle.

    Returns the render payload:
        today, today_count, last_worker, last_timestamp_raw, percent, tier,
        today_events (list of Event, most recent first)

    SchemaError (bad header) and ConfigurationError (bad headcount) propagate.
    """
    events = parse_events(text)
    stats = aggregate_daily(events, today)
    compliance = present_compliance(stats.today_count, total_estimate)

    logger.info(
        f"{today}: {len(events)} events, {stats.today_count} workers today, "
        f"{compliance['percent']}% ({compliance['tier']})"
    )

    return {
        "today": today,
        "today_count": stats.today_count,
        "last_worker": stats.last_worker,
        "last_timestamp_raw": stats.last_timestamp_raw,
        "percent": compliance["percent"],
        "tier": compliance["tier"],
        "today_events": sort_today_events(stats.today_events),
    }


def payload_to_json(payload):
    """Copy of a pipeline payload with Events converted to plain dicts."""
    out = dict(payload)
    out["today_events"] = [asdict(e) for e in payload["today_events"]]
    return out


def get_hygiene_stats(source=None, today=None, total_estimate=None):
    """
    Tool-style entry point: fetch the log, run the pipeline once.

    Parameters:
        source: path or URL of the log (defaults to the configured document)
        today: YYYY-MM-DD override (defaults to the local date)
        total_estimate: headcount override (defaults to the configured estimate)

    Returns JSON-compatible dict with status and the render payload.
    """
    try:
        settings = load_settings()
        source = source or settings["source_document"]
        if total_estimate is None:
            total_estimate = settings["total_workers_estimate"]
        text = fetch_source_text(source, timeout=settings["fetch_timeout_s"])
        payload = run_pipeline(text, today or local_today(), total_estimate)
        return {"status": "success", "source": source, **payload_to_json(payload)}
    except HygieneDashboardError as e:
        logger.error(f"Error in get_hygiene_stats: {e}")
        return {"status": "error", "error_type": type(e).__name__, "message": str(e)}
