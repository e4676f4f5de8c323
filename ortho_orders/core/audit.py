# ortho_orders/core/audit.py
"""
下单链路的追踪标识。

一次建单对应一个 TraceContext：日志行里带 tag()，
500 响应体里的 traceId 也由 new_trace_id() 生成，客户端报错可直接在日志里检索。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

SOURCE_ORDER_CREATE = "http:orders.create"


def new_trace_id() -> str:
    return f"t_{uuid4().hex[:12]}"


@dataclass(frozen=True)
class TraceContext:
    trace_id: str
    source: str
    partner_id: Optional[int] = None

    def tag(self) -> str:
        """t_xxx@http:orders.create/p7"""
        base = f"{self.trace_id}@{self.source}"
        return base if self.partner_id is None else f"{base}/p{self.partner_id}"


def new_trace(source: str, *, partner_id: Optional[int] = None) -> TraceContext:
    return TraceContext(trace_id=new_trace_id(), source=source, partner_id=partner_id)


def ensure_trace(
    ctx: Optional[TraceContext], source: str, *, partner_id: Optional[int] = None
) -> TraceContext:
    return ctx if ctx is not None else new_trace(source, partner_id=partner_id)
