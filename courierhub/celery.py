"""
Celery application.
Dev settings run tasks inline (CELERY_TASK_ALWAYS_EAGER); production uses the Redis broker
and the beat schedule declared in settings.
"""

import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courierhub.settings_dev")

app = Celery("courierhub")
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
