from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from modules.materials import schemas, service

router = APIRouter(prefix="/materials", tags=["materials"])


@router.post("", response_model=schemas.MaterialRead)
def create_material_endpoint(material_in: schemas.MaterialCreate, db: Session = Depends(get_db)):
    return service.create_material(db, material_in)


@router.get("", response_model=list[schemas.MaterialRead])
def list_materials_endpoint(db: Session = Depends(get_db)):
    return service.list_materials(db)


@router.get("/{material_id}/prices", response_model=list[schemas.PriceRead])
def list_prices_endpoint(material_id: int, db: Session = Depends(get_db)):
    return service.list_prices(db, material_id)


@router.post("/{material_id}/prices", response_model=schemas.PriceRead)
def add_price_endpoint(material_id: int, price_in: schemas.PriceCreate, db: Session = Depends(get_db)):
    return service.add_price(db, material_id, price_in)


@router.get("/{material_id}/price", response_model=schemas.ResolvedPrice)
def resolve_price_endpoint(material_id: int, as_of: Optional[date] = None, db: Session = Depends(get_db)):
    return service.resolve_price(db, material_id, as_of)
