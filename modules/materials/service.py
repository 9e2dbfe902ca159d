from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.errors import ConstraintViolation, NotFoundException, ValidationAppException
from core.logging import get_logger
from modules.materials import models, schemas
from modules.materials.pricing import resolve_unit_price

logger = get_logger(__name__)


def _serialize_material(material: models.Material) -> Dict[str, Any]:
    return {
        "id": material.id,
        "name": material.name,
        "density": material.density,
        "unit": material.unit,
    }


def _serialize_price(price: models.MaterialPrice) -> Dict[str, Any]:
    return {
        "id": price.id,
        "material_id": price.material_id,
        "unit_price": price.unit_price,
        "effective_start_date": price.effective_start_date,
        "effective_end_date": price.effective_end_date,
    }


def create_material(db: Session, material_in: schemas.MaterialCreate) -> Dict[str, Any]:
    name = material_in.name.strip()
    if db.query(models.Material).filter(models.Material.name == name).first():
        raise ConstraintViolation("A material with this name already exists")
    material = models.Material(name=name, density=material_in.density, unit=material_in.unit)
    db.add(material)
    db.commit()
    db.refresh(material)
    return _serialize_material(material)


def list_materials(db: Session) -> List[Dict[str, Any]]:
    materials = db.query(models.Material).order_by(models.Material.name).all()
    return [_serialize_material(m) for m in materials]


def get_material_model(db: Session, material_id: int) -> models.Material:
    material = db.query(models.Material).filter(models.Material.id == material_id).first()
    if not material:
        raise NotFoundException("Material not found")
    return material


def price_history(db: Session, material_id: int) -> List[models.MaterialPrice]:
    """Price periods of a material, oldest start first.

    This ordering decides overlaps in :func:`resolve_unit_price`: the period
    that started earliest wins.
    """
    return (
        db.query(models.MaterialPrice)
        .filter(models.MaterialPrice.material_id == material_id)
        .order_by(models.MaterialPrice.effective_start_date, models.MaterialPrice.id)
        .all()
    )


def list_prices(db: Session, material_id: int) -> List[Dict[str, Any]]:
    get_material_model(db, material_id)
    return [_serialize_price(p) for p in price_history(db, material_id)]


def add_price(db: Session, material_id: int, price_in: schemas.PriceCreate) -> Dict[str, Any]:
    get_material_model(db, material_id)
    start = price_in.effective_start_date
    end = price_in.effective_end_date
    if end is not None and end < start:
        raise ValidationAppException("Effective end date cannot be earlier than the start date")

    history = price_history(db, material_id)
    if any(p.effective_start_date == start for p in history):
        raise ConstraintViolation("A price starting on this date already exists")

    # Close the open-ended price that the new one supersedes.
    for current in history:
        if current.effective_end_date is None and current.effective_start_date < start:
            current.effective_end_date = start - timedelta(days=1)
            logger.info(
                "Closed open-ended price %s of material %s at %s", current.id, material_id, current.effective_end_date
            )

    price = models.MaterialPrice(
        material_id=material_id,
        unit_price=price_in.unit_price,
        effective_start_date=start,
        effective_end_date=end,
    )
    db.add(price)
    db.commit()
    db.refresh(price)
    return _serialize_price(price)


def resolve_price(db: Session, material_id: int, as_of: Optional[date] = None) -> Dict[str, Any]:
    get_material_model(db, material_id)
    unit_price = resolve_unit_price(price_history(db, material_id), as_of)
    return {"material_id": material_id, "as_of": as_of, "unit_price": unit_price}
