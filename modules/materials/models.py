from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from core.models import Base, TimestampMixin


class Material(Base, TimestampMixin):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    density = Column(Float, nullable=True)
    unit = Column(String(32), nullable=True)

    prices = relationship("MaterialPrice", back_populates="material")


class MaterialPrice(Base, TimestampMixin):
    __tablename__ = "material_prices"
    __table_args__ = (UniqueConstraint("material_id", "effective_start_date", name="uq_material_price_start"),)

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)
    unit_price = Column(Float, nullable=False)
    effective_start_date = Column(Date, nullable=False)
    # NULL means open-ended.
    effective_end_date = Column(Date, nullable=True)

    material = relationship("Material", back_populates="prices")
