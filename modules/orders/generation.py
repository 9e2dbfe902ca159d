"""Build order candidates from a tooling's parts and standard items."""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.settings import Settings
from modules.materials.pricing import calculate_total_price, resolve_unit_price
from modules.materials.service import price_history
from modules.orders.schemas import CuttingOrderCandidate, PurchaseOrderCandidate
from modules.tooling.models import ChildItem, PartInfo, ToolingInfo

DEFAULT_UNIT = "pcs"


def _total_weight(part: PartInfo) -> Optional[float]:
    if not part.weight or part.part_quantity <= 0:
        return None
    return round(part.weight * part.part_quantity, 3)


def _cutting_candidate(tooling: ToolingInfo, part: PartInfo) -> CuttingOrderCandidate:
    return CuttingOrderCandidate(
        tooling_id=tooling.id,
        part_id=part.id,
        part_drawing_number=part.part_drawing_number,
        material_source=part.material_source,
        inventory_number=part.part_inventory_number,
        project_name=tooling.project_name,
        part_name=part.part_name,
        material=part.material.name if part.material else None,
        specifications=part.specifications,
        part_quantity=part.part_quantity,
        total_weight=_total_weight(part),
        remarks=part.remarks,
        heat_treatment=part.heat_treatment,
    )


def _purchased_part_candidate(session: Session, tooling: ToolingInfo, part: PartInfo) -> PurchaseOrderCandidate:
    weight = _total_weight(part)
    total_price = None
    if part.material_id is not None and weight:
        unit_price = resolve_unit_price(price_history(session, part.material_id), tooling.received_date)
        total_price = calculate_total_price(weight, unit_price) or None
    return PurchaseOrderCandidate(
        tooling_id=tooling.id,
        part_id=part.id,
        part_name=part.part_name,
        inventory_number=part.part_inventory_number,
        project_name=tooling.project_name,
        part_quantity=part.part_quantity,
        unit=DEFAULT_UNIT,
        model=part.specifications,
        remark=part.remarks,
        weight=weight,
        total_price=total_price,
    )


def _child_item_candidate(tooling: ToolingInfo, item: ChildItem) -> PurchaseOrderCandidate:
    return PurchaseOrderCandidate(
        tooling_id=tooling.id,
        child_item_id=item.id,
        part_name=item.name,
        project_name=tooling.project_name,
        part_quantity=item.quantity,
        unit=item.unit or DEFAULT_UNIT,
        model=item.model,
        required_date=item.required_date,
        remark=item.remark,
    )


def build_candidates(
    session: Session, tooling: ToolingInfo, settings: Settings
) -> Tuple[List[CuttingOrderCandidate], List[PurchaseOrderCandidate]]:
    """Parts sourced as ``settings.purchased_source`` are bought; every other part is cut.

    Standard items are always bought and are keyed by name.
    """
    cutting: List[CuttingOrderCandidate] = []
    purchase: List[PurchaseOrderCandidate] = []
    purchased = settings.purchased_source.strip().lower()
    for part in tooling.parts:
        if (part.material_source or "").strip().lower() == purchased:
            purchase.append(_purchased_part_candidate(session, tooling, part))
        else:
            cutting.append(_cutting_candidate(tooling, part))
    for item in tooling.child_items:
        purchase.append(_child_item_candidate(tooling, item))
    return cutting, purchase
