from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ortho_orders.db.base import Base

STORE_TYPE_INSOLE = "rady_insole"
STORE_TYPE_BLOCK = "milling_block"


class Store(Base):
    """
    合作方库存位（成品鞋垫 / 铣削毛坯块）。

    groessen_mengen 结构：
      rady_insole   : {"35": {"length": 225, "quantity": 5}, ...}
      milling_block : {"1": {"min_mm": 0, "max_mm": 200, "quantity": 3}, ...}
    老数据里个别条目是纯数字（只有数量）。
    """

    __tablename__ = "stores"
    __table_args__ = (Index("ix_stores_partner_type", "partner_id", "type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
    )
    produktname: Mapped[str] = mapped_column(String(255), nullable=False)
    hersteller: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=STORE_TYPE_INSOLE)

    # JSON 整体替换写回（不做原地修改，避免变更追踪丢失）
    groessen_mengen: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} type={self.type} partner_id={self.partner_id}>"


class StoreHistory(Base):
    """库存变动审计（只追加；仅由库存预占写入）"""

    __tablename__ = "store_histories"
    __table_args__ = (Index("ix_store_histories_store_created", "store_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    change_type: Mapped[str] = mapped_column(String(32), nullable=False, default="sales")
    size_key: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    partner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    customer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    order_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<StoreHistory id={self.id} store_id={self.store_id} "
            f"size={self.size_key!r} new_stock={self.new_stock}>"
        )
