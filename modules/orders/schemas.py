from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CuttingOrderCandidate(BaseModel):
    """A cutting order as generated from part data.

    Identity: ``part_id``, or ``(tooling_id, part_drawing_number, material_source)``
    when no part backs the line. Everything else is payload.
    """

    kind: Literal["cutting"] = "cutting"
    tooling_id: Optional[int] = None
    part_id: Optional[int] = None
    part_drawing_number: Optional[str] = None
    material_source: Optional[str] = None
    inventory_number: Optional[str] = None
    project_name: Optional[str] = None
    part_name: Optional[str] = None
    material: Optional[str] = None
    specifications: Optional[str] = None
    part_quantity: int = Field(0, ge=0)
    total_weight: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None
    heat_treatment: bool = Field(False, description="Adds the heat-treatment remark when remarks are empty")


class PurchaseOrderCandidate(BaseModel):
    """A purchase order for a bought-in part or a standard item.

    Identity: ``part_id``, or ``(tooling_id, part_name)`` for standard items.
    """

    kind: Literal["purchase"] = "purchase"
    tooling_id: Optional[int] = None
    part_id: Optional[int] = None
    child_item_id: Optional[int] = None
    part_name: Optional[str] = None
    inventory_number: Optional[str] = None
    project_name: Optional[str] = None
    part_quantity: int = Field(0, ge=0)
    unit: Optional[str] = None
    model: Optional[str] = None
    supplier: Optional[str] = None
    required_date: Optional[date] = None
    remark: Optional[str] = None
    production_unit: Optional[str] = None
    demand_date: Optional[date] = None
    applicant: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    total_price: Optional[float] = Field(None, ge=0)


class CuttingOrderBatch(BaseModel):
    orders: List[CuttingOrderCandidate] = Field(..., min_length=1)


class PurchaseOrderBatch(BaseModel):
    tooling_id: Optional[int] = Field(None, description="Applied to orders that carry no tooling_id")
    orders: List[PurchaseOrderCandidate] = Field(..., min_length=1)


class ReconcileStats(BaseModel):
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


class CuttingOrderRead(BaseModel):
    id: int
    tooling_id: Optional[int] = None
    part_id: Optional[int] = None
    inventory_number: Optional[str] = None
    project_name: Optional[str] = None
    part_drawing_number: Optional[str] = None
    part_name: Optional[str] = None
    material: Optional[str] = None
    specifications: Optional[str] = None
    part_quantity: int
    total_weight: Optional[float] = None
    material_source: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderRead(BaseModel):
    id: int
    tooling_id: Optional[int] = None
    part_id: Optional[int] = None
    child_item_id: Optional[int] = None
    inventory_number: Optional[str] = None
    project_name: Optional[str] = None
    part_name: Optional[str] = None
    part_quantity: int
    unit: Optional[str] = None
    model: Optional[str] = None
    supplier: Optional[str] = None
    required_date: Optional[date] = None
    remark: Optional[str] = None
    production_unit: Optional[str] = None
    demand_date: Optional[date] = None
    applicant: Optional[str] = None
    weight: Optional[float] = None
    total_price: Optional[float] = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CuttingOrderReconcileRead(BaseModel):
    data: List[CuttingOrderRead]
    stats: ReconcileStats


class PurchaseOrderReconcileRead(BaseModel):
    data: List[PurchaseOrderRead]
    stats: ReconcileStats


class GeneratedOrdersRead(BaseModel):
    cutting: CuttingOrderReconcileRead
    purchase: PurchaseOrderReconcileRead


class PurchaseOrderStatusUpdate(BaseModel):
    status: Literal["pending", "ordered", "received", "cancelled"]


class BatchDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class DeleteResult(BaseModel):
    deleted: int
