from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolingBase(BaseModel):
    inventory_number: Optional[str] = Field(None, max_length=32, description="Shop-assigned code, e.g. QT250101")
    project_name: Optional[str] = None
    category: Optional[str] = None
    production_unit: Optional[str] = None
    recorder: Optional[str] = None
    sets_count: Optional[int] = Field(None, ge=0)
    received_date: Optional[date] = None

    @field_validator("inventory_number")
    @classmethod
    def strip_inventory_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class ToolingCreate(ToolingBase):
    pass


class ToolingUpdate(ToolingBase):
    pass


class ToolingRead(ToolingBase):
    id: int
    part_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class PartCreate(BaseModel):
    part_inventory_number: Optional[str] = Field(None, description="Explicit code; skips allocation")
    part_drawing_number: Optional[str] = None
    part_name: Optional[str] = None
    part_quantity: int = Field(0, ge=0)
    material_id: Optional[int] = None
    material_source: Optional[str] = None
    specifications: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, description="Unit weight (kg)")
    remarks: Optional[str] = None
    heat_treatment: bool = False


class PartRead(PartCreate):
    id: int
    tooling_id: int
    part_inventory_number: str = ""

    model_config = ConfigDict(from_attributes=True)


class ChildItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    model: Optional[str] = None
    quantity: int = Field(0, ge=0)
    unit: Optional[str] = None
    required_date: Optional[date] = None
    remark: Optional[str] = None


class ChildItemRead(ChildItemCreate):
    id: int
    tooling_id: int

    model_config = ConfigDict(from_attributes=True)


class PartCodeRequest(BaseModel):
    explicit_code: Optional[str] = None


class PartCodeRead(BaseModel):
    part_inventory_number: str


class ToolingDeleteResult(BaseModel):
    deleted: int
    parts_deleted: int = 0
    child_items_deleted: int = 0
