from sqlalchemy import Boolean, Column, Date, Float, Integer, String

from core.models import Base, TimestampMixin


# tooling_id / part_id / child_item_id are weak references: orders outlive
# their parents, so no foreign keys are declared.


class CuttingOrder(Base, TimestampMixin):
    __tablename__ = "cutting_orders"

    id = Column(Integer, primary_key=True, index=True)
    natural_key = Column(String(512), nullable=False, unique=True)
    tooling_id = Column(Integer, nullable=True, index=True)
    part_id = Column(Integer, nullable=True, index=True)
    inventory_number = Column(String(40), nullable=True)
    project_name = Column(String(255), nullable=True)
    part_drawing_number = Column(String(128), nullable=True)
    part_name = Column(String(255), nullable=True)
    material = Column(String(255), nullable=True)
    specifications = Column(String(512), nullable=True)
    part_quantity = Column(Integer, nullable=False, default=0)
    total_weight = Column(Float, nullable=True)
    material_source = Column(String(64), nullable=True)
    remarks = Column(String(1024), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)


class PurchaseOrder(Base, TimestampMixin):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    natural_key = Column(String(512), nullable=False, unique=True)
    tooling_id = Column(Integer, nullable=True, index=True)
    part_id = Column(Integer, nullable=True, index=True)
    child_item_id = Column(Integer, nullable=True)
    inventory_number = Column(String(40), nullable=True)
    project_name = Column(String(255), nullable=True)
    part_name = Column(String(255), nullable=True)
    part_quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(32), nullable=True)
    model = Column(String(255), nullable=True)
    supplier = Column(String(255), nullable=True)
    required_date = Column(Date, nullable=True)
    remark = Column(String(1024), nullable=True)
    production_unit = Column(String(255), nullable=True)
    demand_date = Column(Date, nullable=True)
    applicant = Column(String(255), nullable=True)
    weight = Column(Float, nullable=True)
    total_price = Column(Float, nullable=True)
    status = Column(String(32), nullable=False, default="pending")
