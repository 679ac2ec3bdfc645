"""
Hand-hygiene log parsing.

Turns the raw text of the hygiene log (one line per hand-washing event) into
typed Event records.

Source format:
    Worker Name,Timestamp[,other columns...]
    Alice,2024-03-15 08:00:00

- Header labels are matched by case-insensitive substring ("name", "timestamp"),
  in any column position. Other columns are ignored.
- Fields are comma-split and trimmed. No quoting: a comma inside a value is
  not supported.
- Short rows and rows with an unparseable timestamp are dropped; a missing
  required header aborts the whole document with SchemaError.
"""

from dataclasses import dataclass

import pandas as pd

from config import LOG_FORMAT, get_logger
from errors import RowParseError, SchemaError

logger = get_logger(__name__)

# pandas resolves these to the current time
RELATIVE_KEYWORDS = ("now", "today")


@dataclass(frozen=True)
class Event:
    """One parsed hand-hygiene record."""
    worker_name: str
    timestamp_raw: str
    date_part: str
    epoch_millis: int


def split_fields(line, delimiter=LOG_FORMAT["delimiter"]):
    """Split one line on the delimiter and trim every field."""
    return [field.strip() for field in line.split(delimiter)]


def resolve_column(labels, key):
    """Index of the first label containing `key` (labels already lower-cased)."""
    for idx, label in enumerate(labels):
        if key in label:
            return idx
    raise SchemaError(f"Column '{key}' missing from header: {labels}")


def resolve_headers(header_line, header_keys=None):
    """
    Map each logical field to its physical column index.

    Returns e.g. {"name": 0, "timestamp": 1}. Raises SchemaError when any
    logical field has no matching column.
    """
    header_keys = header_keys or LOG_FORMAT["header_keys"]
    labels = [label.lower() for label in split_fields(header_line)]
    return {field: resolve_column(labels, key) for field, key in header_keys.items()}


def parse_timestamp(timestamp_raw):
    """
    Parse a log timestamp into epoch milliseconds.

    The first space is replaced by "T" before parsing, so "2024-03-15 08:00:00"
    is read as ISO 8601. Only ISO 8601 forms are accepted; the relative
    keywords pandas knows ("now", "today") are not dates in the log.
    Naive timestamps are interpreted in local time.
    Returns None when the string is not a date.
    """
    safe = timestamp_raw.replace(" ", "T", 1).strip()
    if not safe or safe.lower() in RELATIVE_KEYWORDS:
        return None
    try:
        ts = pd.to_datetime(safe, format="ISO8601", errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return int(ts.to_pydatetime().timestamp() * 1000)


def parse_row(fields, header_map):
    """Build an Event from one row of trimmed fields. Raises RowParseError."""
    required = max(header_map.values())
    if len(fields) <= required:
        raise RowParseError(f"Row has {len(fields)} fields, needs {required + 1}")

    worker_name = fields[header_map["name"]]
    timestamp_raw = fields[header_map["timestamp"]]

    epoch_millis = parse_timestamp(timestamp_raw)
    if epoch_millis is None:
        raise RowParseError(f"Unparseable timestamp: {timestamp_raw!r}")

    return Event(
        worker_name=worker_name,
        timestamp_raw=timestamp_raw,
        date_part=timestamp_raw.split(" ", 1)[0],
        epoch_millis=epoch_millis,
    )


def parse_events(text):
    """
    Parse the full log text into Events, in order of appearance.

    The header line is resolved first; SchemaError propagates and no events are
    produced. Blank lines are skipped and bad rows are dropped silently.
    """
    lines = text.strip().split("\n")
    header_map = resolve_headers(lines[0])

    events = []
    dropped = 0
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        try:
            events.append(parse_row(split_fields(line), header_map))
        except RowParseError as e:
            dropped += 1
            logger.debug(f"Skipping line {lineno}: {e}")

    if dropped:
        logger.info(f"Parsed {len(events)} events, dropped {dropped} malformed rows")
    return events
