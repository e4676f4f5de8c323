import math

import pytest

from ortho_orders.services.order_errors import NoMatchedSize, SizeOutOfTolerance, SizingConflict
from ortho_orders.services.size_resolver import (
    BlockStore,
    InsoleStore,
    block_range,
    extract_length,
    match_insole_size,
    nearest_length_match,
    nearest_lower_upper,
    range_match,
    resolve_size,
    size_quantity,
    store_variant,
    with_quantity,
)

SIZES = {
    "35": {"length": 225, "quantity": 5},
    "36": {"length": 230, "quantity": 2},
}


# ---------------- 最近长度匹配 ----------------


def test_insole_scenario_a_picks_exact_length():
    # 足长 220/218 → 目标 225 → "35"
    m = resolve_size(InsoleStore(sizes=SIZES), 220, 218)
    assert m.label == "35"
    assert m.is_block is False
    assert m.target_length == 225


def test_nearest_length_tie_keeps_first_label_in_map_order():
    sizes = {"a": {"length": 220}, "b": {"length": 230}}
    assert nearest_length_match(sizes, 225) == "a"

    reordered = {"b": {"length": 230}, "a": {"length": 220}}
    assert nearest_length_match(reordered, 225) == "b"


def test_nearest_length_picks_global_minimum():
    sizes = {
        "40": {"length": 260},
        "37": {"length": 238},
        "38": {"length": 245},
        "39": {"length": 252},
    }
    assert nearest_length_match(sizes, 247) == "38"


def test_nearest_length_skips_entries_without_length():
    sizes = {"legacy": 7, "broken": {"length": "n/a"}, "41": {"length": 270}}
    assert nearest_length_match(sizes, 200) == "41"
    assert nearest_length_match({"legacy": 7}, 200) is None
    assert nearest_length_match(None, 200) is None


def test_insole_scenario_b_out_of_tolerance():
    # 足长 240 → 目标 245；最近 "36"(230) 差 15 > 10
    with pytest.raises(SizeOutOfTolerance) as ei:
        resolve_size(InsoleStore(sizes=SIZES), 240, 239)

    err = ei.value
    assert err.required_length == 245
    assert err.nearest_lower == 230
    assert err.nearest_upper is None
    payload = err.to_payload()
    assert payload["success"] is False
    assert payload["requiredLength"] == 245
    assert payload["nearestLowerSize"] == {"length": 230}
    assert payload["nearestUpperSize"] is None
    assert "Erforderliche Länge: 245mm" in payload["message"]
    assert "Nächstgrößere Größe: –mm" in payload["message"]


def test_tolerance_boundary_is_inclusive():
    m = match_insole_size({"x": {"length": 215}}, 225)
    assert m is not None and m.accepted is True

    m = match_insole_size({"x": {"length": 214.5}}, 225)
    assert m is not None and m.accepted is False


def test_nearest_lower_upper_are_strict():
    lower, upper = nearest_lower_upper(
        {"a": {"length": 225}, "b": {"length": 240}, "c": {"length": 250}}, 240
    )
    assert lower == 225
    assert upper == 250


def test_insole_without_any_length_raises_no_match():
    with pytest.raises(NoMatchedSize):
        resolve_size(InsoleStore(sizes={"35": 4}, store_id=9), 220, 220)


# ---------------- 区间匹配 ----------------


def test_block_scenario_c_default_ranges():
    blocks = {"1": {"quantity": 1}, "2": {"quantity": 1}, "3": {"quantity": 1}}
    assert resolve_size(BlockStore(sizes=blocks), 180, 170).label == "1"
    assert resolve_size(BlockStore(sizes=blocks), 260, 255).label == "3"


def test_block_uses_raw_length_without_allowance():
    blocks = {"1": {"quantity": 1}, "2": {"quantity": 1}}
    # 198 + 5 会跨到 "2"，但区间匹配不加余量
    m = resolve_size(BlockStore(sizes=blocks), 198, 190)
    assert m.label == "1"
    assert m.is_block is True
    assert m.target_length == 198


def test_block_range_is_half_open():
    blocks = {"1": {}, "2": {}}
    assert range_match(blocks, 200) == "2"
    assert range_match(blocks, 199.9) == "1"


def test_block_first_match_wins_on_overlap():
    blocks = {
        "wide": {"min_mm": 0, "max_mm": 300},
        "narrow": {"min_mm": 200, "max_mm": 220},
    }
    assert range_match(blocks, 210) == "wide"


def test_block_explicit_bounds_override_defaults():
    assert block_range("1", {"min_mm": 100}) == (100, 200)
    assert block_range("3", {}) == (250, math.inf)
    assert block_range("custom", {"min_mm": 10}) is None


def test_block_without_match_raises():
    with pytest.raises(NoMatchedSize):
        resolve_size(BlockStore(sizes={"1": {}, "2": {}}, store_id=3), 260, 250)


# ---------------- 条目 / 分派 ----------------


def test_quantity_helpers_support_both_entry_shapes():
    assert size_quantity({"length": 225, "quantity": 5}) == 5
    assert size_quantity(3) == 3
    assert size_quantity(None) == 0
    assert size_quantity({"length": 225}) == 0

    assert with_quantity({"length": 225, "quantity": 5}, 4) == {"length": 225, "quantity": 4}
    assert with_quantity(3, 2) == 2


def test_extract_length_ignores_legacy_numbers():
    assert extract_length(5) is None
    assert extract_length({"length": "231"}) == 231.0


def test_store_variant_dispatch():
    assert isinstance(store_variant("rady_insole", {}), InsoleStore)
    assert isinstance(store_variant(None, {}), InsoleStore)
    assert isinstance(store_variant("milling_block", {}), BlockStore)
    with pytest.raises(SizingConflict) as ei:
        store_variant("mystery", {}, store_id=5)
    assert ei.value.code == "UNSUPPORTED_STORE_TYPE"


def test_resolve_rejects_unknown_variant_object():
    with pytest.raises(TypeError):
        resolve_size(object(), 220, 220)  # type: ignore[arg-type]
