from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Any

from app.schemas.work_order import (
    WorkOrderDetail, Instance, InstanceCreate, Stage, StageUpdate
)
from app.services import stages, work_orders
from app.core.events import EventBus
from app.api.deps import get_db, get_event_bus

router = APIRouter()


@router.get("/{work_order_id}", response_model=WorkOrderDetail)
def get_work_order(work_order_id: int, db: Session = Depends(get_db)) -> Any:
    """Full work order view: instances, processes, allocations and stages"""
    return work_orders.get_work_order(db, work_order_id)


@router.post("/{work_order_id}/instances", response_model=Instance, status_code=status.HTTP_201_CREATED)
def add_instance(
    work_order_id: int,
    instance_in: InstanceCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """Attach a component to the work order"""
    return work_orders.add_component_instance(
        db, work_order_id, instance_in.component_id, instance_in.quantity, events=events
    )


@router.get("/{work_order_id}/stages", response_model=List[Stage])
def list_stages(work_order_id: int, db: Session = Depends(get_db)) -> Any:
    """Stages in business order: Assembly, Testing, PDI, Packing, Dispatch"""
    return stages.list_stages(db, work_order_id)


@router.put("/{work_order_id}/stages", response_model=Stage)
def update_stage(
    work_order_id: int,
    stage_in: StageUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    return stages.update_stage(db, work_order_id, stage_in.stage_name, stage_in.stage_date, events=events)
