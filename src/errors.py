"""Error taxonomy for the hygiene dashboard pipeline."""


class HygieneDashboardError(Exception):
    """Base class for all dashboard errors."""


class RetrievalError(HygieneDashboardError):
    """The source document could not be fetched (not found, network, timeout)."""


class SchemaError(HygieneDashboardError):
    """The header row lacks a required logical column. Aborts the whole document."""


class RowParseError(HygieneDashboardError):
    """A single row is short or has an unparseable timestamp. Never leaves the parser."""


class ConfigurationError(HygieneDashboardError):
    """Startup configuration is unusable (e.g. non-positive headcount estimate)."""
