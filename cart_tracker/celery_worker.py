# cart_tracker/celery_worker.py
from celery import Celery
from celery.schedules import crontab

from cart_tracker.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    RETENTION_SWEEP_HOUR,
)

celery_app = Celery(
    "cart_tracker",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane explicite, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "cart_tracker.tasks.retention",
)

# raz dziennie czyscimy rekordy starsze niz RETENTION_DAYS
celery_app.conf.beat_schedule = {
    "sweep-retention-daily": {
        "task": "cart_tracker.tasks.retention.sweep_retention_task",
        "schedule": crontab(hour=RETENTION_SWEEP_HOUR, minute=0),
    },
}

celery_app.conf.timezone = "UTC"
