# ortho_orders/db/base.py
from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Iterator, List

from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("orthoorders.models")


class Base(DeclarativeBase):
    """全局唯一 ORM Base"""

    pass


_INITIALIZED: bool = False  # 防重复初始化


def _iter_model_modules(pkg_name: str = "ortho_orders.models") -> Iterator[str]:
    """发现 ortho_orders.models.* 下的所有模块（排除以下划线开头的内部模块）"""
    pkg = importlib.import_module(pkg_name)
    for _, name, _ in pkgutil.walk_packages(list(pkg.__path__), prefix=pkg_name + "."):
        if name.rsplit(".", 1)[-1].startswith("_"):
            continue
        yield name


def init_models(*, force: bool = False) -> None:
    """
    集中导入模型 + 固化关系映射：
      1) 先显式导入关键模型（保证字符串关系目标类已注册）
      2) 再递归导入 ortho_orders.models.* 补齐遗漏
      3) 最后统一 configure_mappers()
    """
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    loaded: List[str] = []
    explicit_chain = [
        "ortho_orders.models.partner",
        "ortho_orders.models.customer",
        "ortho_orders.models.store",
        "ortho_orders.models.supply",
        "ortho_orders.models.order",
    ]
    for mod in explicit_chain:
        importlib.import_module(mod)
        loaded.append(mod)

    for mod in _iter_model_modules():
        if mod in loaded:
            continue
        importlib.import_module(mod)
        loaded.append(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (loaded %d modules)", len(loaded))
