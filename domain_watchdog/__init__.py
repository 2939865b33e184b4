"""Domain Watchdog: RDAP-backed domain watchlists with change notifications."""

__version__ = "1.0.0"
