from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ortho_orders.db.base import Base


class PartnerOrderCounter(Base):
    """
    partner 维度订单号计数器（ORDER_NUMBER_STRATEGY=atomic_counter 时使用）。

    last_value 即最近一次发出的订单号。
    """

    __tablename__ = "partner_order_counters"

    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        primary_key=True,
    )
    scope: Mapped[str] = mapped_column(String(32), primary_key=True, default="insole")
    last_value: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<PartnerOrderCounter partner_id={self.partner_id} scope={self.scope} "
            f"last={self.last_value}>"
        )
