"""
Celery configuration for the HashTracks resilience service.

Remediation runs on its own queue so a burst of alerts from one scrape
cannot delay other background work.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("resilience")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "remediation": {
        "exchange": "remediation",
        "routing_key": "remediation",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "resilience.tasks.auto_file_issues": {"queue": "remediation"},
}
