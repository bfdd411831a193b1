from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class ProductType(str, enum.Enum):
    MOTOR = "Motor"
    NON_MOTOR = "NonMotor"


class Component(Base):
    """Component template - the catalog entry a work order instance is built from"""
    __tablename__ = "components"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    product_type = Column(String, nullable=False)  # Motor, NonMotor
    is_fixed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    processes = relationship(
        "ComponentProcess",
        back_populates="component",
        order_by="ComponentProcess.sequence",
    )
    raw_materials = relationship("ComponentRawMaterial", back_populates="component")

    @property
    def is_motor(self) -> bool:
        return self.product_type == ProductType.MOTOR.value


class ComponentProcess(Base):
    """Process template - one manufacturing step of a component type"""
    __tablename__ = "component_processes"
    __table_args__ = (
        UniqueConstraint("component_id", "name", name="uq_component_process_name"),
        UniqueConstraint("component_id", "sequence", name="uq_component_process_sequence"),
    )

    id = Column(Integer, primary_key=True, index=True)
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    sequence = Column(Integer, nullable=False)  # Display order only, progress is not gated on it
    default_responsible = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    component = relationship("Component", back_populates="processes")


class ComponentRawMaterial(Base):
    """Design-time raw material requirement per unit of a component"""
    __tablename__ = "component_raw_materials"
    __table_args__ = (
        UniqueConstraint("component_id", "raw_material_id", name="uq_component_raw_material"),
    )

    id = Column(Integer, primary_key=True, index=True)
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    quantity_per_unit = Column(Integer, nullable=False, default=0)
    required_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    component = relationship("Component", back_populates="raw_materials")
    raw_material = relationship("RawMaterial")
