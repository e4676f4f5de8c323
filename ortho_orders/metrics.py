# ortho_orders/metrics.py
from __future__ import annotations

import os

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    generate_latest,
    multiprocess,
)

# 业务指标
ORDERS_CREATED = Counter("orders_created_total", "Orders created", ["store_type"])
ORDER_REJECTIONS = Counter("order_rejections_total", "Order placements rejected", ["code"])
INVENTORY_RESERVATIONS = Counter(
    "inventory_reservations_total", "Inventory reservation outcomes", ["outcome"]
)

router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    """
    单进程：直接导出默认 REGISTRY；
    多进程（设置了 PROMETHEUS_MULTIPROC_DIR）：临时 CollectorRegistry 合并各分片。
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
