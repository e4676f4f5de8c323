# ortho_orders/services/order_errors.py
"""
下单链路错误分类。

每个异常自带 HTTP 状态码 + 机器可读 code + 附加字段（extra），
由 http_problem_handlers 统一翻译为 {"success": false, "message": ..., **extra}。
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError


class OrderError(Exception):
    code = "ORDER_ERROR"
    status = 400

    def __init__(self, message: str, *, code: Optional[str] = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.extra: Dict[str, Any] = extra

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        out.update(self.extra)
        return out


class OrderValidationError(OrderError):
    code = "VALIDATION_ERROR"
    status = 400


class OrderNotFound(OrderError):
    code = "NOT_FOUND"
    status = 404


class SizingConflict(OrderError):
    code = "SIZING_CONFLICT"
    status = 400


class NoMatchedSize(SizingConflict):
    code = "NO_MATCHED_SIZE_IN_STORE"

    def __init__(self, store_id: Optional[int] = None) -> None:
        super().__init__(
            "Unable to determine nearest size from groessenMengen for this store",
            storeId=store_id,
        )


def _fmt_len(v: Optional[float]) -> str:
    if v is None:
        return "–"
    return str(int(v)) if float(v).is_integer() else str(v)


class SizeOutOfTolerance(SizingConflict):
    code = "SIZE_OUT_OF_TOLERANCE"

    def __init__(
        self,
        *,
        required_length: float,
        nearest_lower: Optional[float],
        nearest_upper: Optional[float],
    ) -> None:
        self.required_length = required_length
        self.nearest_lower = nearest_lower
        self.nearest_upper = nearest_upper
        super().__init__(
            f"Keine passende Größe im Lager. Erforderliche Länge: {_fmt_len(required_length)}mm. "
            f"Nächstkleinere Größe: {_fmt_len(nearest_lower)}mm. "
            f"Nächstgrößere Größe: {_fmt_len(nearest_upper)}mm.",
            requiredLength=required_length,
            nearestLowerSize={"length": nearest_lower} if nearest_lower is not None else None,
            nearestUpperSize={"length": nearest_upper} if nearest_upper is not None else None,
        )


class InsufficientStock(SizingConflict):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, size_key: str, is_block: bool) -> None:
        self.size_key = size_key
        label = "Block" if is_block else "Größe"
        super().__init__(
            f"{label} {size_key} ist nicht auf Lager (Menge: 0). Bestellung nicht möglich.",
            warning="Insufficient stock",
            sizeKey=size_key,
        )


class PersistenceConflict(OrderError):
    code = "PERSISTENCE_CONFLICT"
    status = 400


def persistence_conflict_from(exc: IntegrityError) -> PersistenceConflict:
    """
    把数据库约束冲突翻译成业务语义：
    - 唯一约束 → 重复数据
    - 外键约束 → 引用的记录不存在
    """
    raw = str(getattr(exc, "orig", exc)).lower()
    if "unique" in raw or "duplicate" in raw:
        return PersistenceConflict(
            "A record with the same unique value already exists",
            code="DUPLICATE_RECORD",
            error=str(getattr(exc, "orig", exc)),
        )
    if "foreign key" in raw:
        return PersistenceConflict(
            "A referenced record does not exist",
            code="DANGLING_REFERENCE",
            error=str(getattr(exc, "orig", exc)),
        )
    return PersistenceConflict(
        "Database constraint violated",
        error=str(getattr(exc, "orig", exc)),
    )
