from pydantic import Field
from typing import Optional, List
from datetime import datetime, date

from app.db.models.component import ProductType
from app.db.models.work_order import ProgressStatus, StageName
from app.schemas.component import CamelModel


# Order / Instance Group Schemas
class Order(CamelModel):
    id: int
    status: str
    target_delivery_date: Optional[date] = None
    created_at: Optional[datetime] = None


class InstanceGroupCreate(CamelModel):
    instance_name: str = Field(..., min_length=1, max_length=255)
    instance_type: str = Field(..., min_length=1, max_length=255)


class InstanceGroup(CamelModel):
    id: int
    order_id: int
    instance_name: str
    instance_type: str
    created_at: Optional[datetime] = None


# Process Status Schemas
class ProcessStatusUpdate(CamelModel):
    completed_quantity: Optional[int] = Field(None, ge=0)
    in_use_quantity: Optional[int] = Field(None, ge=0)
    completion_date: Optional[date] = None
    responsible_person: Optional[str] = Field(None, max_length=255)


class ProcessStatus(CamelModel):
    id: int
    instance_id: int
    process_id: int
    process_name: Optional[str] = None
    sequence: Optional[int] = None
    completed_quantity: int
    in_use_quantity: int
    allowed_quantity: int
    completion_date: Optional[date] = None
    responsible_person: Optional[str] = None
    status: ProgressStatus


class ProcessStatusResult(ProcessStatus):
    instance_status: ProgressStatus
    work_order_status: ProgressStatus


# Material Schemas
class MaterialAssign(CamelModel):
    raw_material_id: int
    quantity: int = Field(..., ge=0)


class MaterialAllocation(CamelModel):
    id: int
    instance_id: int
    raw_material_id: int
    quantity: int


class ReconciledProcess(CamelModel):
    process_id: int
    previous_in_use_quantity: int
    in_use_quantity: int
    previous_completed_quantity: int
    completed_quantity: int
    status: ProgressStatus


class MaterialAssignResult(CamelModel):
    allocation: MaterialAllocation
    material_pool: int
    reconciled: List[ReconciledProcess] = []


class MaterialPool(CamelModel):
    instance_id: int
    material_pool: int
    in_use_total: int
    headroom: int
    allocations: List[MaterialAllocation] = []


class MaterialUsageRecord(CamelModel):
    raw_material_id: int
    used_quantity: int = Field(..., ge=0)


class MaterialUsage(CamelModel):
    id: int
    instance_id: int
    process_id: int
    raw_material_id: int
    used_quantity: int


# Instance Schemas
class InstanceCreate(CamelModel):
    component_id: int
    quantity: int = Field(..., gt=0)


class Instance(CamelModel):
    id: int
    work_order_id: int
    component_id: int
    component_name: Optional[str] = None
    product_type: Optional[ProductType] = None
    quantity: int
    status: ProgressStatus
    material_pool: int = 0
    processes: List[ProcessStatus] = []
    allocations: List[MaterialAllocation] = []
    material_usage: List[MaterialUsage] = []


# Stage Schemas
class StageUpdate(CamelModel):
    stage_name: StageName
    stage_date: date


class Stage(CamelModel):
    work_order_id: int
    stage_name: StageName
    stage_date: date


# Work Order Schemas
class WorkOrderCreate(CamelModel):
    target_date: Optional[date] = None
    instance_group_id: Optional[int] = None


class WorkOrder(CamelModel):
    id: int
    order_id: int
    instance_group_id: Optional[int] = None
    target_date: Optional[date] = None
    status: ProgressStatus
    created_at: Optional[datetime] = None


class WorkOrderDetail(WorkOrder):
    instance_name: Optional[str] = None
    instance_type: Optional[str] = None
    instances: List[Instance] = []
    stages: List[Stage] = []


class WorkOrderPage(CamelModel):
    work_orders: List[WorkOrderDetail]
    total: int
    next_cursor: Optional[int] = None
