# Celery instance is defined in ledger_project/celery.py
# It points the task queue at the Django settings of this project
from .celery import celery_app

__all__ = ("celery_app",)

""" Workers are started with "celery -A ledger_project worker -l info".
    The report-cache invalidation task in ledger_core.tasks is the only
    job they run. """
