from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    density: Optional[float] = Field(None, gt=0, description="kg/m3")
    unit: Optional[str] = None


class MaterialRead(MaterialCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class PriceCreate(BaseModel):
    unit_price: float = Field(..., gt=0)
    effective_start_date: date
    effective_end_date: Optional[date] = None


class PriceRead(PriceCreate):
    id: int
    material_id: int

    model_config = ConfigDict(from_attributes=True)


class ResolvedPrice(BaseModel):
    material_id: int
    as_of: Optional[date] = None
    unit_price: float
