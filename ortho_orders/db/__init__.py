# ortho_orders/db/__init__.py
from ortho_orders.db.base import Base, init_models

__all__ = ["Base", "init_models"]
