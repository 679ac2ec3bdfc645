#!/usr/bin/env python3
"""
Command-line wrapper for the hygiene dashboard tools.

Usage:
    python3 scripts/run_tool.py <tool_name> [params_json]

Examples:
    python3 scripts/run_tool.py get_hygiene_stats
    python3 scripts/run_tool.py get_hygiene_stats '{"today": "2024-03-15"}'
    python3 scripts/run_tool.py export_today '{"source": "data/LoginInfo.csv"}'
"""

import sys
import inspect
import os
import json

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "src"))

from daily_stats import get_hygiene_stats, local_today, run_pipeline
from export import export_daily_log
from config import load_settings
from errors import HygieneDashboardError
from source import fetch_source_text


def export_today(source=None, today=None, output_dir=None):
    """Run the pipeline once and export today's table to .xlsx."""
    try:
        settings = load_settings()
        source = source or settings["source_document"]
        today = today or local_today()
        text = fetch_source_text(source, timeout=settings["fetch_timeout_s"])
        payload = run_pipeline(text, today, settings["total_workers_estimate"])
    except HygieneDashboardError as e:
        return {"status": "error", "error_type": type(e).__name__, "message": str(e)}
    if output_dir:
        return export_daily_log(payload["today_events"], today, output_dir=output_dir)
    return export_daily_log(payload["today_events"], today)


TOOL_MAP = {
    "get_hygiene_stats": get_hygiene_stats,
    "export_today": export_today,
}

USAGE = "Usage: python3 scripts/run_tool.py <tool_name> [params_json]"


def error(message):
    return {"status": "error", "message": message}


def run(argv):
    """Resolve tool + JSON params from argv and call the tool. Always returns a result dict."""
    if not argv:
        return error(f"{USAGE}\nAvailable tools: {sorted(TOOL_MAP)}")

    tool_name, raw_params = argv[0], argv[1] if len(argv) > 1 else "{}"
    fn = TOOL_MAP.get(tool_name)
    if fn is None:
        return error(f"Unknown tool: {tool_name}. Available: {sorted(TOOL_MAP)}")

    try:
        params = json.loads(raw_params)
    except json.JSONDecodeError as e:
        return error(f"Invalid JSON parameters: {e}")
    if not isinstance(params, dict):
        return error("Parameters must be a JSON object")

    accepted = set(inspect.signature(fn).parameters)
    unknown = sorted(set(params) - accepted)
    if unknown:
        return error(f"{tool_name} does not accept {unknown}. Accepted: {sorted(accepted)}")

    return fn(**params)


def main():
    os.chdir(project_root)
    result = run(sys.argv[1:])
    print(json.dumps(result, indent=2, default=str))
    sys.exit(0 if result.get("status") == "success" else 1)


if __name__ == "__main__":
    main()
