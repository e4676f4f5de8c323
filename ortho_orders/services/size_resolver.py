# ortho_orders/services/size_resolver.py
"""
尺码匹配（纯函数，无 IO，不读写数量）。

两套互不相干的算法，按库存位类型分派：

- InsoleStore（rady_insole）：最近长度匹配
    目标长度 = max(左右足长) + 5mm；
    取 |目标 - length| 最小的尺码，平局取 map 中先出现者；
    差值 > 10mm 视为拒绝，附带最近的更小 / 更大长度用于提示。

- BlockStore（milling_block）：区间匹配
    直接用原始足长（不加 5mm）；
    min_mm / max_mm 缺失时，"1"/"2"/"3" 回落到默认区间；
    返回第一个满足 [min_mm, max_mm) 的块。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ortho_orders.models.store import STORE_TYPE_BLOCK, STORE_TYPE_INSOLE
from ortho_orders.services.order_errors import NoMatchedSize, SizeOutOfTolerance, SizingConflict

LENGTH_ALLOWANCE_MM = 5
TOLERANCE_MM = 10

DEFAULT_BLOCK_RANGES: Dict[str, Tuple[float, float]] = {
    "1": (0.0, 200.0),
    "2": (200.0, 250.0),
    "3": (250.0, math.inf),
}


@dataclass(frozen=True)
class InsoleStore:
    sizes: Mapping[str, Any]
    store_id: Optional[int] = None


@dataclass(frozen=True)
class BlockStore:
    sizes: Mapping[str, Any]
    store_id: Optional[int] = None


StoreVariant = Union[InsoleStore, BlockStore]


@dataclass(frozen=True)
class InsoleMatch:
    label: str
    length: float
    target: float
    accepted: bool
    # 仅在 accepted=False 时有意义
    nearest_lower: Optional[float] = None
    nearest_upper: Optional[float] = None


@dataclass(frozen=True)
class SizeMatch:
    label: str
    is_block: bool
    target_length: float


# ---------------------------------------------------------------------------
# 条目解析
# ---------------------------------------------------------------------------


def _to_number(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def extract_length(entry: Any) -> Optional[float]:
    """只认 {"length": ...} 形态；老格式纯数字条目没有长度。"""
    if isinstance(entry, Mapping) and "length" in entry:
        return _to_number(entry.get("length"))
    return None


def size_quantity(entry: Any) -> int:
    """兼容新旧两种格式：{"quantity": n, ...} / 纯数字"""
    if isinstance(entry, Mapping) and "quantity" in entry:
        q = _to_number(entry.get("quantity"))
        return int(q) if q is not None else 0
    q = _to_number(entry)
    return int(q) if q is not None else 0


def with_quantity(entry: Any, qty: int) -> Any:
    """返回数量替换后的新条目（不修改入参）"""
    if isinstance(entry, Mapping) and "quantity" in entry:
        out = dict(entry)
        out["quantity"] = qty
        return out
    if _to_number(entry) is not None:
        return qty
    return {"quantity": qty}


def foot_length(fusslange1: Any, fusslange2: Any) -> float:
    return max(float(fusslange1), float(fusslange2))


def insole_target_length(fusslange1: Any, fusslange2: Any) -> float:
    return foot_length(fusslange1, fusslange2) + LENGTH_ALLOWANCE_MM


# ---------------------------------------------------------------------------
# 最近长度匹配（rady_insole）
# ---------------------------------------------------------------------------


def nearest_length_match(sizes: Any, target: float) -> Optional[str]:
    if not isinstance(sizes, Mapping):
        return None

    closest: Optional[str] = None
    smallest = math.inf
    for label, entry in sizes.items():
        length = extract_length(entry)
        if length is None:
            continue
        diff = abs(target - length)
        # 严格小于：平局保留先出现的
        if diff < smallest:
            smallest = diff
            closest = label
    return closest


def nearest_lower_upper(sizes: Any, target: float) -> Tuple[Optional[float], Optional[float]]:
    """严格小于 / 严格大于目标长度的最近长度"""
    lower: Optional[float] = None
    upper: Optional[float] = None
    if not isinstance(sizes, Mapping):
        return lower, upper
    for entry in sizes.values():
        length = extract_length(entry)
        if length is None:
            continue
        if length < target and (lower is None or length > lower):
            lower = length
        if length > target and (upper is None or length < upper):
            upper = length
    return lower, upper


def match_insole_size(
    sizes: Any, target: float, *, tolerance: float = TOLERANCE_MM
) -> Optional[InsoleMatch]:
    label = nearest_length_match(sizes, target)
    if label is None:
        return None

    length = extract_length(sizes[label])
    if length is None:
        return None
    if abs(target - length) <= tolerance:
        return InsoleMatch(label=label, length=length, target=target, accepted=True)

    lower, upper = nearest_lower_upper(sizes, target)
    return InsoleMatch(
        label=label,
        length=length,
        target=target,
        accepted=False,
        nearest_lower=lower,
        nearest_upper=upper,
    )


# ---------------------------------------------------------------------------
# 区间匹配（milling_block）
# ---------------------------------------------------------------------------


def block_range(label: str, entry: Any) -> Optional[Tuple[float, float]]:
    min_mm: Optional[float] = None
    max_mm: Optional[float] = None
    if isinstance(entry, Mapping):
        min_mm = _to_number(entry.get("min_mm"))
        max_mm = _to_number(entry.get("max_mm"))

    default = DEFAULT_BLOCK_RANGES.get(label)
    if default is not None:
        if min_mm is None:
            min_mm = default[0]
        if max_mm is None:
            max_mm = default[1]

    if min_mm is None or max_mm is None:
        return None
    return min_mm, max_mm


def range_match(sizes: Any, length_mm: float) -> Optional[str]:
    if not isinstance(sizes, Mapping):
        return None
    for label, entry in sizes.items():
        bounds = block_range(label, entry)
        if bounds is None:
            continue
        lo, hi = bounds
        if lo <= length_mm < hi:
            return label
    return None


# ---------------------------------------------------------------------------
# 分派
# ---------------------------------------------------------------------------


def store_variant(
    store_type: Optional[str], sizes: Any, *, store_id: Optional[int] = None
) -> StoreVariant:
    # 老数据 type 为空时按成品鞋垫处理
    if not store_type or store_type == STORE_TYPE_INSOLE:
        return InsoleStore(sizes=sizes or {}, store_id=store_id)
    if store_type == STORE_TYPE_BLOCK:
        return BlockStore(sizes=sizes or {}, store_id=store_id)
    raise SizingConflict(
        f"Unsupported store type: {store_type}",
        code="UNSUPPORTED_STORE_TYPE",
        storeId=store_id,
    )


def resolve_size(store: StoreVariant, fusslange1: Any, fusslange2: Any) -> SizeMatch:
    """
    对库存位做尺码匹配；匹配失败直接抛 SizingConflict 子类。

    只负责“选哪个 label”，数量检查由调用方做。
    """
    if isinstance(store, BlockStore):
        length = foot_length(fusslange1, fusslange2)
        label = range_match(store.sizes, length)
        if label is None:
            raise NoMatchedSize(store.store_id)
        return SizeMatch(label=label, is_block=True, target_length=length)

    if isinstance(store, InsoleStore):
        target = insole_target_length(fusslange1, fusslange2)
        m = match_insole_size(store.sizes, target)
        if m is None:
            raise NoMatchedSize(store.store_id)
        if not m.accepted:
            raise SizeOutOfTolerance(
                required_length=target,
                nearest_lower=m.nearest_lower,
                nearest_upper=m.nearest_upper,
            )
        return SizeMatch(label=m.label, is_block=False, target_length=target)

    raise TypeError(f"unknown store variant: {type(store).__name__}")
