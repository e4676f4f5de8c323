# ortho_orders/services/task_queue.py
"""
后台任务投递端口。

- BackgroundTaskQueue：Starlette BackgroundTasks，响应完整发出后在本进程执行；
- CeleryTaskQueue    ：send_task 投递到 broker，由 ortho_orders.tasks 执行。

下单流程只依赖 enqueue(job_name, **kwargs)，不关心后端。
"""

from __future__ import annotations

from typing import Any, Protocol

from celery import Celery
from starlette.background import BackgroundTasks

from ortho_orders.services.background_jobs import JobContext, run_job


class TaskQueue(Protocol):
    def enqueue(self, job_name: str, **kwargs: Any) -> None: ...


class BackgroundTaskQueue:
    def __init__(self, background_tasks: BackgroundTasks, ctx: JobContext) -> None:
        self._background_tasks = background_tasks
        self._ctx = ctx

    def enqueue(self, job_name: str, **kwargs: Any) -> None:
        self._background_tasks.add_task(run_job, self._ctx, job_name, **kwargs)


class CeleryTaskQueue:
    def __init__(self, celery_app: Celery) -> None:
        self._celery = celery_app

    def enqueue(self, job_name: str, **kwargs: Any) -> None:
        self._celery.send_task(job_name, kwargs=kwargs)
