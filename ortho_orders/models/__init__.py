# ortho_orders/models/__init__.py
"""
统一导出 ORM 模型。
"""

from importlib import import_module


def _export(module_name: str, class_name: str) -> None:
    module = import_module(module_name)
    globals()[class_name] = getattr(module, class_name)


MODEL_SPECS = [
    # -------- 主数据（只读）--------
    ("ortho_orders.models.partner", "Partner"),
    ("ortho_orders.models.partner", "PartnerAccountInfo"),
    ("ortho_orders.models.partner", "Employee"),
    ("ortho_orders.models.customer", "Customer"),
    ("ortho_orders.models.customer", "ScreenerFile"),
    ("ortho_orders.models.customer", "CustomerHistory"),
    # -------- 库存位 --------
    ("ortho_orders.models.store", "Store"),
    ("ortho_orders.models.store", "StoreHistory"),
    # -------- Versorgung --------
    ("ortho_orders.models.supply", "Supply"),
    # -------- 订单 --------
    ("ortho_orders.models.order", "CustomerOrder"),
    ("ortho_orders.models.order", "CustomerProduct"),
    ("ortho_orders.models.order", "CustomerOrderHistory"),
    ("ortho_orders.models.order", "CustomerOrderInsurance"),
    ("ortho_orders.models.order", "CustomerOrderInsoleStandard"),
    ("ortho_orders.models.order_counter", "PartnerOrderCounter"),
]

for _mod, _cls in MODEL_SPECS:
    _export(_mod, _cls)

__all__ = [cls for _, cls in MODEL_SPECS]
