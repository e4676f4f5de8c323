# ortho_orders/db/engine.py
# 统一引擎工厂：DSN 归一 + 按后端注入 connect_args
from __future__ import annotations

import re
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

__all__ = ["normalize_async_dsn", "normalize_sync_dsn", "create_async_engine_safe"]


def _strip_quotes(url: str) -> str:
    # 有些环境会把值写成 '"postgresql+psycopg://..."'，统一剥掉两侧引号
    url = (url or "").strip()
    if (url.startswith('"') and url.endswith('"')) or (url.startswith("'") and url.endswith("'")):
        url = url[1:-1].strip()
    return url


def normalize_sync_dsn(url: str) -> str:
    """postgres/postgresql(+*) → postgresql+psycopg；sqlite+aiosqlite → sqlite"""
    url = _strip_quotes(url)
    if url.startswith("sqlite+aiosqlite://"):
        return "sqlite://" + url[len("sqlite+aiosqlite://") :]
    if url.startswith("postgresql+asyncpg://") or url.startswith("postgres+asyncpg://"):
        return re.sub(r"^postgres(?:ql)?\+asyncpg://", "postgresql+psycopg://", url)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def normalize_async_dsn(url: str) -> str:
    """sqlite:// → sqlite+aiosqlite://；PG 统一走 psycopg3（支持 async）"""
    url = _strip_quotes(url)
    if url.startswith("sqlite+aiosqlite://"):
        return url
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://") :]
    return normalize_sync_dsn(url)


def _connect_args_for(url_str: str) -> dict[str, Any]:
    """
    返回后端专属 connect_args：
    - SQLite: 仅 check_same_thread
    - 其他：不传
    """
    backend = make_url(url_str).get_backend_name()
    if backend.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def create_async_engine_safe(url_str: str, *, echo: bool = False) -> AsyncEngine:
    """Async 版（'postgresql+psycopg' 或 'sqlite+aiosqlite'）。"""
    url_str = normalize_async_dsn(url_str)
    u = make_url(url_str)

    kwargs: dict[str, Any] = {"echo": echo}
    if u.get_backend_name().startswith("postgresql"):
        kwargs["pool_pre_ping"] = True
    connect_args = _connect_args_for(url_str)
    if connect_args:
        kwargs["connect_args"] = connect_args
    # 内存 sqlite：所有会话共享同一连接，否则每个连接都是一个空库
    if u.get_backend_name() == "sqlite" and u.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool

    return create_async_engine(url_str, **kwargs)
