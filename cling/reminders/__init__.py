"""Reminder module (API router, service, repository, Celery reconciliation).

Reads always report the effective status; the stored status is refreshed to
``overdue`` only by the reconciliation task.
"""
