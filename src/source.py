"""
Fetch boundary: retrieve the raw hygiene log text.

The locator is either an http(s) URL or a filesystem path. Every failure is
reported as RetrievalError, never as malformed data.
"""

import os
import time

import requests

from config import get_logger
from errors import RetrievalError

logger = get_logger(__name__)


def is_url(locator):
    return locator.lower().startswith(("http://", "https://"))


def fetch_url_text(url, timeout=10):
    """GET the document with a cache-busting `t` parameter."""
    params = {"t": int(time.time() * 1000)}
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.Timeout:
        raise RetrievalError(f"Timed out after {timeout}s fetching {url}")
    except requests.exceptions.HTTPError as e:
        raise RetrievalError(f"Source unavailable ({e.response.status_code}): {url}")
    except requests.exceptions.RequestException as e:
        raise RetrievalError(f"Could not reach {url}: {e}")
    return response.text


def read_file_text(path):
    """Read a local log file; utf-8-sig drops a BOM if the collector writes one."""
    if not os.path.exists(path):
        raise RetrievalError(f"Source file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise RetrievalError(f"Could not read {path}: {e}")


def fetch_source_text(locator, timeout=10):
    """Return the full text of the source document at `locator`."""
    if is_url(locator):
        text = fetch_url_text(locator, timeout=timeout)
    else:
        text = read_file_text(locator)
    logger.debug(f"Fetched {len(text)} chars from {locator}")
    return text
