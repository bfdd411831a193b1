from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class ProgressStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class StageName(str, enum.Enum):
    # Declaration order is the business order used when listing stages
    ASSEMBLY = "Assembly"
    TESTING = "Testing"
    PDI = "PDI"
    PACKING = "Packing"
    DISPATCH = "Dispatch"


STAGE_ORDER = {stage.value: index for index, stage in enumerate(StageName)}


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    instance_group_id = Column(Integer, ForeignKey("instance_groups.id"), nullable=True, index=True)
    target_date = Column(Date, nullable=True)
    status = Column(String, default=ProgressStatus.PENDING.value, nullable=False)  # Derived from process statuses
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    order = relationship("Order", back_populates="work_orders")
    instance_group = relationship("InstanceGroup", back_populates="work_orders")
    instances = relationship("WorkOrderComponent", back_populates="work_order", order_by="WorkOrderComponent.id")
    stage_rows = relationship("WorkOrderStage", back_populates="work_order")

    @property
    def stages(self):
        return sorted(self.stage_rows, key=lambda s: STAGE_ORDER.get(s.stage_name, len(STAGE_ORDER)))

    @property
    def instance_name(self):
        return self.instance_group.instance_name if self.instance_group else None

    @property
    def instance_type(self):
        return self.instance_group.instance_type if self.instance_group else None


class WorkOrderComponent(Base):
    """A component instance attached to a work order with a target quantity"""
    __tablename__ = "work_order_components"
    __table_args__ = (
        UniqueConstraint("work_order_id", "component_id", name="uq_work_order_component"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    status = Column(String, default=ProgressStatus.PENDING.value, nullable=False)  # Derived from process statuses
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    work_order = relationship("WorkOrder", back_populates="instances")
    component = relationship("Component")
    allocations = relationship("WorkOrderMaterial", back_populates="instance", order_by="WorkOrderMaterial.id")
    process_statuses = relationship("ProcessStatus", back_populates="instance", order_by="ProcessStatus.id")
    material_usage = relationship("ProcessMaterialUsage", back_populates="instance", order_by="ProcessMaterialUsage.id")

    @property
    def processes(self):
        return sorted(self.process_statuses, key=lambda p: (p.sequence, p.process_id))

    @property
    def component_name(self):
        return self.component.name if self.component else None

    @property
    def product_type(self):
        return self.component.product_type if self.component else None

    @property
    def material_pool(self) -> int:
        # Display only; capacity checks re-read the sum inside their transaction
        return sum(a.quantity for a in self.allocations)


class WorkOrderMaterial(Base):
    """Raw material allocated to an instance; the sum of quantities is the instance material pool"""
    __tablename__ = "work_order_materials"
    __table_args__ = (
        UniqueConstraint("instance_id", "raw_material_id", name="uq_work_order_material"),
    )

    id = Column(Integer, primary_key=True, index=True)
    instance_id = Column(Integer, ForeignKey("work_order_components.id"), nullable=False, index=True)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    instance = relationship("WorkOrderComponent", back_populates="allocations")
    raw_material = relationship("RawMaterial")


class ProcessStatus(Base):
    __tablename__ = "process_status"
    __table_args__ = (
        UniqueConstraint("instance_id", "process_id", name="uq_process_status_instance_process"),
    )

    id = Column(Integer, primary_key=True, index=True)
    instance_id = Column(Integer, ForeignKey("work_order_components.id"), nullable=False, index=True)
    process_id = Column(Integer, ForeignKey("component_processes.id"), nullable=False, index=True)
    completed_quantity = Column(Integer, default=0, nullable=False)
    in_use_quantity = Column(Integer, default=0, nullable=False)
    allowed_quantity = Column(Integer, default=0, nullable=False)  # Mirror of the instance material pool
    completion_date = Column(Date, nullable=True)
    responsible_person = Column(String, nullable=True)
    status = Column(String, default=ProgressStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    instance = relationship("WorkOrderComponent", back_populates="process_statuses")
    process = relationship("ComponentProcess")

    @property
    def process_name(self):
        return self.process.name if self.process else None

    @property
    def sequence(self):
        return self.process.sequence if self.process else None


class ProcessMaterialUsage(Base):
    """Which raw material a process consumed; kept apart from pool accounting"""
    __tablename__ = "process_material_usage"
    __table_args__ = (
        UniqueConstraint("instance_id", "process_id", "raw_material_id", name="uq_process_material_usage"),
    )

    id = Column(Integer, primary_key=True, index=True)
    instance_id = Column(Integer, ForeignKey("work_order_components.id"), nullable=False, index=True)
    process_id = Column(Integer, ForeignKey("component_processes.id"), nullable=False, index=True)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    used_quantity = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    instance = relationship("WorkOrderComponent", back_populates="material_usage")
    process = relationship("ComponentProcess")
    raw_material = relationship("RawMaterial")


class WorkOrderStage(Base):
    __tablename__ = "work_order_stages"
    __table_args__ = (
        UniqueConstraint("work_order_id", "stage_name", name="uq_work_order_stage"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    stage_name = Column(String, nullable=False)  # Assembly, Testing, PDI, Packing, Dispatch
    stage_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    work_order = relationship("WorkOrder", back_populates="stage_rows")
