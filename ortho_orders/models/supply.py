from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ortho_orders.db.base import Base

SUPPLY_TYPE_PUBLIC = "public"
SUPPLY_TYPE_PRIVATE = "private"


class Supply(Base):
    """
    Versorgung：可复用的鞋垫产品模板。

    - public  : 目录里的常规 Versorgung
    - private : 下单时由影子 Versorgung（缓存草稿）转正而来，绑定单个客户
    """

    __tablename__ = "supplies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    versorgung: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rohling_hersteller: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    artikel_hersteller: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    material: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    diagnosis_status: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)

    supply_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SUPPLY_TYPE_PUBLIC
    )
    supply_status_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    store_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("stores.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    partner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    customer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Supply id={self.id} type={self.supply_type} store_id={self.store_id}>"
