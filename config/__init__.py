# Django 启动时加载 Celery app，让 shared_task 绑定到它
from .celery import app as celery_app

__all__ = ('celery_app',)
