"""Celery application setup for queue messages."""

from __future__ import annotations

import os

from celery import Celery, signals
from kombu import Queue

from domain_watchdog.core.config import settings
from domain_watchdog.core.logging import setup_logging
from domain_watchdog.jobs.job_defaults import (
    DEFAULT_SCHEDULES,
    JOB_PRIORITIES,
    cron_to_crontab,
    get_job_priority,
)


def _build_task_routes() -> dict[str, dict[str, int | str]]:
    routes: dict[str, dict[str, int | str]] = {}
    for message_name, config in JOB_PRIORITIES.items():
        routes[f"messages.{message_name}"] = {
            "queue": config["queue"],
            "priority": config["priority"],
        }
    return routes


def _build_beat_schedule() -> dict[str, dict]:
    schedule: dict[str, dict] = {}
    for message_name, (cron_expr, _description) in DEFAULT_SCHEDULES.items():
        schedule[message_name] = {
            "task": f"messages.{message_name}",
            "schedule": cron_to_crontab(cron_expr),
            "options": get_job_priority(message_name),
        }
    return schedule


celery_app = Celery(
    "domain_watchdog",
    broker=settings.broker_url,
    backend=settings.result_backend,
)

celery_app.conf.update(
    timezone=settings.scheduler_timezone,
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    task_soft_time_limit=int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", "1800")),
    task_time_limit=int(os.getenv("CELERY_TASK_TIME_LIMIT", "2100")),
    worker_max_tasks_per_child=int(os.getenv("CELERY_MAX_TASKS_PER_CHILD", "100")),
    task_default_queue="default",
    task_default_priority=5,
    task_queue_max_priority=9,
    task_routes=_build_task_routes(),
    broker_transport_options={
        "visibility_timeout": 60 * 60,
        "priority_steps": list(range(10)),
    },
    task_queues=(
        Queue("default", routing_key="default", max_priority=9),
        Queue("low", routing_key="low", max_priority=9),
    ),
    beat_schedule=_build_beat_schedule(),
)


@signals.setup_logging.connect
def _configure_worker_logging(**_kwargs) -> None:
    setup_logging()


# Register tasks
celery_app.autodiscover_tasks(["domain_watchdog.jobs"])
