from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.database import Database
from core.errors import ConstraintViolation, NotFoundException, ValidationAppException
from core.logging import get_logger
from modules.materials import models as material_models
from modules.tooling import models, schemas
from modules.tooling.sequence import SequenceAllocator, lock_tooling

logger = get_logger(__name__)


def _serialize_tooling(tooling: models.ToolingInfo, part_count: int = 0) -> Dict[str, Any]:
    return {
        "id": tooling.id,
        "inventory_number": tooling.inventory_number,
        "project_name": tooling.project_name,
        "category": tooling.category,
        "production_unit": tooling.production_unit,
        "recorder": tooling.recorder,
        "sets_count": tooling.sets_count,
        "received_date": tooling.received_date,
        "part_count": part_count,
    }


def _serialize_part(part: models.PartInfo) -> Dict[str, Any]:
    return {
        "id": part.id,
        "tooling_id": part.tooling_id,
        "part_inventory_number": part.part_inventory_number or "",
        "part_drawing_number": part.part_drawing_number,
        "part_name": part.part_name,
        "part_quantity": part.part_quantity,
        "material_id": part.material_id,
        "material_source": part.material_source,
        "specifications": part.specifications,
        "weight": part.weight,
        "remarks": part.remarks,
        "heat_treatment": part.heat_treatment,
    }


def _serialize_child_item(item: models.ChildItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "tooling_id": item.tooling_id,
        "name": item.name,
        "model": item.model,
        "quantity": item.quantity,
        "unit": item.unit,
        "required_date": item.required_date,
        "remark": item.remark,
    }


def _part_count(db: Session, tooling_id: int) -> int:
    return db.query(func.count(models.PartInfo.id)).filter(models.PartInfo.tooling_id == tooling_id).scalar() or 0


def _ensure_inventory_number_free(db: Session, inventory_number: Optional[str], tooling_id: Optional[int] = None):
    if not inventory_number:
        return
    query = db.query(models.ToolingInfo).filter(models.ToolingInfo.inventory_number == inventory_number)
    if tooling_id is not None:
        query = query.filter(models.ToolingInfo.id != tooling_id)
    if query.first():
        raise ConstraintViolation(f"Inventory number {inventory_number} is already in use")


def get_tooling_model(db: Session, tooling_id: int) -> models.ToolingInfo:
    tooling = db.query(models.ToolingInfo).filter(models.ToolingInfo.id == tooling_id).first()
    if not tooling:
        raise NotFoundException("Tooling not found")
    return tooling


def create_tooling(db: Session, tooling_in: schemas.ToolingCreate) -> Dict[str, Any]:
    _ensure_inventory_number_free(db, tooling_in.inventory_number)
    tooling = models.ToolingInfo(**tooling_in.model_dump(), part_sequence=0)
    db.add(tooling)
    db.commit()
    db.refresh(tooling)
    return _serialize_tooling(tooling)


def list_toolings(db: Session) -> List[Dict[str, Any]]:
    toolings = db.query(models.ToolingInfo).order_by(models.ToolingInfo.id).all()
    return [_serialize_tooling(t, _part_count(db, t.id)) for t in toolings]


def get_tooling(db: Session, tooling_id: int) -> Dict[str, Any]:
    tooling = get_tooling_model(db, tooling_id)
    return _serialize_tooling(tooling, _part_count(db, tooling_id))


def update_tooling(database: Database, tooling_id: int, tooling_in: schemas.ToolingUpdate) -> Dict[str, Any]:
    """Apply a partial update. Coding a tooling assigns codes to its uncoded parts."""
    changes = tooling_in.model_dump(exclude_unset=True)
    allocator = SequenceAllocator(database)

    def _work(session: Session) -> Dict[str, Any]:
        tooling = lock_tooling(session, tooling_id)
        if "inventory_number" in changes:
            _ensure_inventory_number_free(session, changes["inventory_number"], tooling_id)
        for field, value in changes.items():
            setattr(tooling, field, value)
        session.flush()
        allocator.backfill(session, tooling)
        return _serialize_tooling(tooling, _part_count(session, tooling_id))

    return database.run_in_transaction(_work)


def delete_tooling(db: Session, tooling_id: int, cascade: bool = False) -> Dict[str, Any]:
    tooling = get_tooling_model(db, tooling_id)
    parts = db.query(models.PartInfo).filter(models.PartInfo.tooling_id == tooling_id).all()
    items = db.query(models.ChildItem).filter(models.ChildItem.tooling_id == tooling_id).all()
    if (parts or items) and not cascade:
        raise ValidationAppException("Tooling still has parts or child items; delete with cascade=true")
    for record in [*parts, *items]:
        db.delete(record)
    db.delete(tooling)
    db.commit()
    logger.info("Deleted tooling %s with %d parts and %d child items", tooling_id, len(parts), len(items))
    return {"deleted": 1, "parts_deleted": len(parts), "child_items_deleted": len(items)}


def allocate_part_code(database: Database, tooling_id: int, explicit_code: Optional[str] = None) -> Dict[str, Any]:
    code = SequenceAllocator(database).allocate_part_code(tooling_id, explicit_code)
    return {"part_inventory_number": code}


def create_part(database: Database, tooling_id: int, part_in: schemas.PartCreate) -> Dict[str, Any]:
    allocator = SequenceAllocator(database)
    values = part_in.model_dump(exclude={"part_inventory_number"})

    def _work(session: Session) -> Dict[str, Any]:
        tooling = lock_tooling(session, tooling_id)
        if part_in.material_id is not None:
            material = (
                session.query(material_models.Material)
                .filter(material_models.Material.id == part_in.material_id)
                .first()
            )
            if not material:
                raise NotFoundException("Material not found")
        code = allocator.claim(session, tooling, part_in.part_inventory_number)
        part = models.PartInfo(tooling_id=tooling_id, part_inventory_number=code or None, **values)
        session.add(part)
        session.flush()
        return _serialize_part(part)

    return database.run_in_transaction(_work)


def list_parts(db: Session, tooling_id: int) -> List[Dict[str, Any]]:
    get_tooling_model(db, tooling_id)
    parts = (
        db.query(models.PartInfo)
        .filter(models.PartInfo.tooling_id == tooling_id)
        .order_by(models.PartInfo.id)
        .all()
    )
    return [_serialize_part(p) for p in parts]


def delete_part(db: Session, part_id: int) -> None:
    part = db.query(models.PartInfo).filter(models.PartInfo.id == part_id).first()
    if not part:
        raise NotFoundException("Part not found")
    db.delete(part)
    db.commit()


def create_child_item(db: Session, tooling_id: int, item_in: schemas.ChildItemCreate) -> Dict[str, Any]:
    get_tooling_model(db, tooling_id)
    item = models.ChildItem(tooling_id=tooling_id, **item_in.model_dump())
    item.name = item.name.strip()
    db.add(item)
    db.commit()
    db.refresh(item)
    return _serialize_child_item(item)


def list_child_items(db: Session, tooling_id: int) -> List[Dict[str, Any]]:
    get_tooling_model(db, tooling_id)
    items = (
        db.query(models.ChildItem)
        .filter(models.ChildItem.tooling_id == tooling_id)
        .order_by(models.ChildItem.id)
        .all()
    )
    return [_serialize_child_item(i) for i in items]
