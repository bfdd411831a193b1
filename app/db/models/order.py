from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


# Orders and raw materials are owned by the order/stock CRUD modules.
# They are mapped here so work orders can reference and validate them.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String, default="Pending", nullable=False)
    target_delivery_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    instance_groups = relationship("InstanceGroup", back_populates="order")
    work_orders = relationship("WorkOrder", back_populates="order")


class RawMaterial(Base):
    __tablename__ = "raw_materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    unit = Column(String, default="pcs", nullable=False)  # pcs, kg, m, etc.
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class InstanceGroup(Base):
    """Named grouping of work orders inside one order (e.g. one machine build)"""
    __tablename__ = "instance_groups"
    __table_args__ = (
        UniqueConstraint("order_id", "instance_name", name="uq_instance_group_order_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    instance_name = Column(String, nullable=False)
    instance_type = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    order = relationship("Order", back_populates="instance_groups")
    work_orders = relationship("WorkOrder", back_populates="instance_group")
