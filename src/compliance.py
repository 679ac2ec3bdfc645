"""
Compliance presentation: percentage of the workforce seen washing hands today,
and the qualitative tier (high / medium / low) shown on the dashboard.
"""

import math

from config import COMPLIANCE
from errors import ConfigurationError


def compliance_percent(today_count, total_estimate):
    """
    min(100, round(100 * today_count / total_estimate)), halves rounded up.

    Raises ConfigurationError if total_estimate is not positive.
    """
    if total_estimate <= 0:
        raise ConfigurationError(
            f"Total workers estimate must be positive, got {total_estimate}"
        )
    ratio = (today_count / total_estimate) * 100
    return min(100, int(math.floor(ratio + 0.5)))


def compliance_tier(percent, thresholds=COMPLIANCE):
    """Classify a percentage: >= high → "high", >= medium → "medium", else "low"."""
    if percent >= thresholds["high"]:
        return "high"
    elif percent >= thresholds["medium"]:
        return "medium"
    else:
        return "low"


def present_compliance(today_count, total_estimate):
    """Return {"percent": int, "tier": str} for today's unique-worker count."""
    percent = compliance_percent(today_count, total_estimate)
    return {"percent": percent, "tier": compliance_tier(percent)}
