"""
Celery app for the billing back-office.

Broker, result backend and eager mode come from the CELERY_* entries in
backoffice.settings; billing_core.tasks (the ledger mirror audit) is found
by autodiscovery.
"""
from __future__ import annotations
import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backoffice.settings")

celery_app = Celery("backoffice")

# CELERY_BROKER_URL -> broker_url, CELERY_TASK_ALWAYS_EAGER -> task_always_eager
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

celery_app.autodiscover_tasks()
