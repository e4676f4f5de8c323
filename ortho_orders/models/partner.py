from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ortho_orders.db.base import Base


class Partner(Base):
    """
    合作方（鞋垫工坊）账号。

    CRUD 不在本服务内；这里只为下单流程读取 vat_country / 默认员工。
    """

    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    account_infos: Mapped[List["PartnerAccountInfo"]] = relationship(
        "PartnerAccountInfo",
        back_populates="partner",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Partner id={self.id} name={self.name!r}>"


class PartnerAccountInfo(Base):
    __tablename__ = "partner_account_infos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # 保险订单的增值税国家只认这里，不认请求体
    vat_country: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    partner: Mapped["Partner"] = relationship("Partner", back_populates="account_infos")


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Employee id={self.id} partner_id={self.partner_id}>"
