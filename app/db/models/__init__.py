from app.db.models.order import Order, RawMaterial, InstanceGroup
from app.db.models.component import Component, ComponentProcess, ComponentRawMaterial, ProductType
from app.db.models.work_order import (
    WorkOrder, WorkOrderComponent, WorkOrderMaterial, ProcessStatus,
    ProcessMaterialUsage, WorkOrderStage, ProgressStatus, StageName, STAGE_ORDER
)

__all__ = [
    "Order", "RawMaterial", "InstanceGroup",
    "Component", "ComponentProcess", "ComponentRawMaterial", "ProductType",
    "WorkOrder", "WorkOrderComponent", "WorkOrderMaterial", "ProcessStatus",
    "ProcessMaterialUsage", "WorkOrderStage", "ProgressStatus", "StageName", "STAGE_ORDER",
]
