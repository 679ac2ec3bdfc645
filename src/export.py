"""
Spreadsheet export of today's hygiene table.

Produces the same four columns the dashboard table shows
(Worker Name, Time, Date, Status) as an .xlsx sheet named "Daily Log".
"""

import os

import pandas as pd

from config import DISPLAY, EXPORT, EXPORT_DIR, get_logger

logger = get_logger(__name__)


def time_only(timestamp_raw):
    """HH:MM:SS part of "YYYY-MM-DD HH:MM:SS", or the whole string if there is no space."""
    parts = timestamp_raw.split(" ", 1)
    return parts[1] if len(parts) > 1 and parts[1] else timestamp_raw


def build_daily_log_frame(events):
    """One row per event, in the order given (most recent first from the pipeline)."""
    rows = [
        {
            "Worker Name": e.worker_name,
            "Time": time_only(e.timestamp_raw),
            "Date": e.date_part,
            "Status": DISPLAY["row_status"],
        }
        for e in events
    ]
    return pd.DataFrame(rows, columns=EXPORT["columns"])


def export_filename(today):
    return EXPORT["filename_template"].format(date=today)


def write_daily_log(events, target):
    """Write the table to `target` (path or binary buffer) as an .xlsx workbook."""
    df = build_daily_log_frame(events)
    df.to_excel(target, sheet_name=EXPORT["sheet_name"], index=False, engine="openpyxl")
    return len(df)


def export_daily_log(events, today, output_dir=EXPORT_DIR):
    """
    Tool-style export: writes WellReflect_Hygiene_Log_<today>.xlsx into output_dir.

    Returns JSON-compatible dict with status, path and row count.
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, export_filename(today))
        n_rows = write_daily_log(events, path)
        logger.info(f"Exported {n_rows} rows to {path}")
        return {"status": "success", "path": path, "rows": n_rows}
    except OSError as e:
        logger.error(f"Error in export_daily_log: {e}", exc_info=True)
        return {"status": "error", "message": str(e)}
