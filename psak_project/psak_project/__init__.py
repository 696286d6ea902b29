# Celery instance is defined in psak_project/celery.py
# celery_app becomes the task queue app for the whole project
from .celery import celery_app

__all__ = ("celery_app",)
