"""
Celery configuration for BOQ project.
"""

import os

from celery import Celery

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('boq')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Task modules live in the application layer, not in a Django app.
app.autodiscover_tasks(['application'], related_name='tasks.bom_tasks')

# Configure task routes
app.conf.task_routes = {
    'application.tasks.bom_tasks.export_consolidated_materials': {'queue': 'reports'},
    'application.tasks.bom_tasks.recalculate_template_total': {'queue': 'recalculation'},
}
