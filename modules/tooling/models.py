from sqlalchemy import Boolean, Column, Date, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from core.models import Base, TimestampMixin


class ToolingInfo(Base, TimestampMixin):
    __tablename__ = "tooling_info"

    id = Column(Integer, primary_key=True, index=True)
    inventory_number = Column(String(32), nullable=True, unique=True)
    project_name = Column(String(255), nullable=True)
    category = Column(String(64), nullable=True)
    production_unit = Column(String(255), nullable=True)
    recorder = Column(String(255), nullable=True)
    sets_count = Column(Integer, nullable=True)
    received_date = Column(Date, nullable=True)
    # Highest part sequence ever issued; never decremented.
    part_sequence = Column(Integer, nullable=False, default=0)

    parts = relationship("PartInfo", back_populates="tooling", order_by="PartInfo.id")
    child_items = relationship("ChildItem", back_populates="tooling", order_by="ChildItem.id")


class PartInfo(Base, TimestampMixin):
    __tablename__ = "parts_info"
    __table_args__ = (UniqueConstraint("tooling_id", "part_inventory_number", name="uq_parts_tooling_code"),)

    id = Column(Integer, primary_key=True, index=True)
    tooling_id = Column(Integer, ForeignKey("tooling_info.id"), nullable=False, index=True)
    part_inventory_number = Column(String(40), nullable=True)
    part_drawing_number = Column(String(128), nullable=True)
    part_name = Column(String(255), nullable=True)
    part_quantity = Column(Integer, nullable=False, default=0)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    material_source = Column(String(64), nullable=True)
    specifications = Column(String(512), nullable=True)
    weight = Column(Float, nullable=True)
    remarks = Column(String(1024), nullable=True)
    heat_treatment = Column(Boolean, nullable=False, default=False)

    tooling = relationship("ToolingInfo", back_populates="parts")
    material = relationship("Material")


class ChildItem(Base, TimestampMixin):
    __tablename__ = "child_items"

    id = Column(Integer, primary_key=True, index=True)
    tooling_id = Column(Integer, ForeignKey("tooling_info.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    model = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(32), nullable=True)
    required_date = Column(Date, nullable=True)
    remark = Column(String(1024), nullable=True)

    tooling = relationship("ToolingInfo", back_populates="child_items")
