# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    SESSION_ENFORCE_EXPIRY,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.expire",
    "storefront.services.notification_service",
)

celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER

# sprzatanie wygaslych sesji tylko przy twardym wygasaniu, inaczej lookup i tak ich nie filtruje
celery_app.conf.beat_schedule = {}
if SESSION_ENFORCE_EXPIRY:
    celery_app.conf.beat_schedule["purge-expired-sessions-hourly"] = {
        "task": "storefront.tasks.expire.purge_expired_sessions_task",
        "schedule": 3600.0,
    }

celery_app.conf.timezone = "UTC"
