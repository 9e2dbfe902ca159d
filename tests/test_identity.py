import pytest

from core.errors import InvalidCandidate
from modules.orders.identity import build_keys, cutting_order_key, purchase_order_key
from modules.orders.schemas import CuttingOrderCandidate, PurchaseOrderCandidate


def test_part_id_is_authoritative_for_cutting_orders():
    before = CuttingOrderCandidate(tooling_id=1, part_id=7, part_name="Base plate", part_drawing_number="D-1")
    after = CuttingOrderCandidate(
        tooling_id=1, part_id=7, part_name="Base plate v2", part_drawing_number="D-2", remarks="rush", total_weight=4
    )
    assert cutting_order_key(before) == cutting_order_key(after)
    assert cutting_order_key(before).token == '["part",7]'


def test_cutting_fallback_uses_drawing_and_source():
    saw = CuttingOrderCandidate(tooling_id=1, part_drawing_number=" D-1 ", material_source="saw", part_name="A")
    renamed = CuttingOrderCandidate(tooling_id=1, part_drawing_number="D-1", material_source="saw", part_name="B")
    flame = CuttingOrderCandidate(tooling_id=1, part_drawing_number="D-1", material_source="flame")

    assert cutting_order_key(saw) == cutting_order_key(renamed)
    assert cutting_order_key(saw) != cutting_order_key(flame)


def test_purchase_standard_items_keyed_by_name():
    first = PurchaseOrderCandidate(tooling_id=3, part_name="Bolt M8", supplier="Acme", part_quantity=10)
    second = PurchaseOrderCandidate(tooling_id=3, part_name="Bolt M8 ", supplier="Bolt Co", part_quantity=12)
    other_tooling = PurchaseOrderCandidate(tooling_id=4, part_name="Bolt M8")

    assert purchase_order_key(first) == purchase_order_key(second)
    assert purchase_order_key(first) != purchase_order_key(other_tooling)


def test_part_and_item_keys_never_collide():
    by_part = PurchaseOrderCandidate(tooling_id=3, part_id=3, part_name="3")
    by_name = PurchaseOrderCandidate(tooling_id=3, part_name="3")
    assert purchase_order_key(by_part).token != purchase_order_key(by_name).token


@pytest.mark.parametrize(
    "candidate",
    [
        CuttingOrderCandidate(part_name="Orphan"),
        CuttingOrderCandidate(tooling_id=1, part_drawing_number="D-1"),
        CuttingOrderCandidate(tooling_id=1, part_drawing_number="  ", material_source="saw"),
    ],
)
def test_unkeyable_cutting_candidate(candidate):
    with pytest.raises(InvalidCandidate):
        cutting_order_key(candidate)


def test_unkeyable_purchase_candidate():
    with pytest.raises(InvalidCandidate, match="tooling_id"):
        purchase_order_key(PurchaseOrderCandidate(part_name="Bolt M8"))


def test_build_keys_reports_first_bad_index():
    batch = [
        CuttingOrderCandidate(part_id=1),
        CuttingOrderCandidate(part_name="no identity"),
        CuttingOrderCandidate(part_name="also none"),
    ]
    with pytest.raises(InvalidCandidate) as exc_info:
        build_keys(batch)
    assert exc_info.value.index == 1
    assert exc_info.value.message.startswith("Order #2")
