import pytest
from starlette.background import BackgroundTasks

from ortho_orders.services.background_jobs import (
    JOB_INVENTORY_RESERVE,
    JOB_SHADOW_SUPPLY_DISCARD,
    JobContext,
    run_job,
)
from ortho_orders.services.task_queue import BackgroundTaskQueue, CeleryTaskQueue

pytestmark = pytest.mark.asyncio


class _FakeCelery:
    def __init__(self) -> None:
        self.sent = []

    def send_task(self, name, kwargs=None, **opts):
        self.sent.append((name, kwargs))


async def test_discard_job_removes_cache_entry(async_session_maker, cache):
    await cache.set("abc^1", "{}", ttl_seconds=60)
    ctx = JobContext(session_maker=async_session_maker, cache=cache)

    assert await run_job(ctx, JOB_SHADOW_SUPPLY_DISCARD, key="abc^1") is True
    assert "abc^1" not in cache.data


async def test_reserve_job_reports_outcome(async_session_maker, cache):
    ctx = JobContext(session_maker=async_session_maker, cache=cache)
    assert await run_job(ctx, JOB_INVENTORY_RESERVE, order_id=123) == "skipped"


async def test_job_errors_are_swallowed(async_session_maker, cache):
    ctx = JobContext(session_maker=async_session_maker, cache=cache)
    # 缺参数 → TypeError，只记日志
    assert await run_job(ctx, JOB_SHADOW_SUPPLY_DISCARD) is None


async def test_unknown_job_name_is_a_programming_error(async_session_maker, cache):
    ctx = JobContext(session_maker=async_session_maker, cache=cache)
    with pytest.raises(KeyError):
        await run_job(ctx, "nope")


async def test_background_queue_runs_after_response(async_session_maker, cache):
    await cache.set("abc^1", "{}", ttl_seconds=60)
    tasks = BackgroundTasks()
    queue = BackgroundTaskQueue(tasks, JobContext(session_maker=async_session_maker, cache=cache))

    queue.enqueue(JOB_SHADOW_SUPPLY_DISCARD, key="abc^1")
    assert "abc^1" in cache.data

    await tasks()
    assert "abc^1" not in cache.data


async def test_celery_queue_sends_by_name():
    app = _FakeCelery()
    CeleryTaskQueue(app).enqueue(JOB_INVENTORY_RESERVE, order_id=7)
    assert app.sent == [(JOB_INVENTORY_RESERVE, {"order_id": 7})]
