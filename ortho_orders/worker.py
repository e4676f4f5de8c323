# ortho_orders/worker.py
# Celery Worker（TASK_QUEUE_BACKEND=celery 时使用）
from __future__ import annotations

import os

from celery import Celery

from ortho_orders.core.config import get_settings

_settings = get_settings()

celery = Celery(
    "ortho_orders",
    broker=_settings.CELERY_BROKER_URL,
    backend=_settings.CELERY_RESULT_BACKEND,
    include=["ortho_orders.tasks"],
)

celery.conf.task_acks_late = True
celery.conf.worker_prefetch_multiplier = 1
celery.conf.broker_transport_options = {"visibility_timeout": 3600}

# 测试/CI：delay()/apply_async() 在本进程同步执行
_TESTING = bool(os.getenv("PYTEST_CURRENT_TEST")) or os.getenv("CELERY_ALWAYS_EAGER") == "1"
if _TESTING:
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
