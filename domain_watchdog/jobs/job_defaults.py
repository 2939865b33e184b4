"""Shared defaults for messages and scheduled jobs.

Message categories:
    1. WATCH PIPELINE
       - process_watchlist_trigger: one scheduling cycle for a watchlist,
         published by the caller that owns the watchlist cadence
       - process_domain_trigger: follow-up per refreshed domain, consumed
         outside this service

    2. DAILY MAINTENANCE
       - update_rdap_servers: rebuild the TLD -> RDAP endpoint directory
"""

from __future__ import annotations

from celery.schedules import crontab


# =============================================================================
# SCHEDULE DEFINITIONS
# =============================================================================
# Format: message_name -> (cron_expression, human_description)

DEFAULT_SCHEDULES: dict[str, tuple[str, str]] = {
    "update_rdap_servers": (
        "0 2 * * *",
        "RDAP directory refresh - downloads the IANA TLD list, the ICANN gTLD list "
        "and the IANA RDAP bootstrap file, then replaces the stored directory. Daily."
    ),
}


# =============================================================================
# QUEUE ROUTING
# =============================================================================
# Queue assignment and priority (higher = more important)

JOB_PRIORITIES: dict[str, dict[str, int | str]] = {
    "process_watchlist_trigger": {"queue": "default", "priority": 6},
    # Consumed by another service
    "process_domain_trigger": {"queue": "domain_triggers", "priority": 5},
    "update_rdap_servers": {"queue": "low", "priority": 3},
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def get_job_priority(name: str) -> dict[str, int | str]:
    return JOB_PRIORITIES.get(name, {"queue": "default", "priority": 5})


def cron_to_crontab(expr: str) -> crontab:
    parts = expr.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron expression: {expr}")
    minute, hour, day_of_month, month_of_year, day_of_week = parts
    return crontab(
        minute=minute,
        hour=hour,
        day_of_week=day_of_week,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
    )
