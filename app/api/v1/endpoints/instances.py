from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Any

from app.schemas.work_order import (
    Instance, MaterialAssign, MaterialAssignResult, MaterialPool,
    MaterialUsage, MaterialUsageRecord,
    ProcessStatus, ProcessStatusResult, ProcessStatusUpdate
)
from app.services import materials, process_status, work_orders
from app.core.events import EventBus
from app.api.deps import get_db, get_event_bus

router = APIRouter()


@router.get("/{instance_id}", response_model=Instance)
def get_instance(instance_id: int, db: Session = Depends(get_db)) -> Any:
    return work_orders.get_instance(db, instance_id)


@router.get("/{instance_id}/materials", response_model=MaterialPool)
def get_material_pool(instance_id: int, db: Session = Depends(get_db)) -> Any:
    """Allocations of an instance with the pool total and remaining headroom"""
    return MaterialPool.model_validate(materials.get_material_pool(db, instance_id))


@router.put("/{instance_id}/materials", response_model=MaterialAssignResult)
def assign_material(
    instance_id: int,
    material_in: MaterialAssign,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """
    Set the quantity of one raw material for the instance.
    Shrinking the pool below the quantity in use scales every process's
    in-use quantity down; the adjusted processes are listed in `reconciled`.
    """
    result = materials.assign_material(
        db, instance_id, material_in.raw_material_id, material_in.quantity, events=events
    )
    return MaterialAssignResult.model_validate(result)


@router.put("/{instance_id}/processes/{process_id}", response_model=ProcessStatusResult)
def update_process_status(
    instance_id: int,
    process_id: int,
    update_in: ProcessStatusUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """Report in-use / completed quantities for one process"""
    row = process_status.update_process_status(
        db,
        instance_id,
        process_id,
        completed_quantity=update_in.completed_quantity,
        in_use_quantity=update_in.in_use_quantity,
        completion_date=update_in.completion_date,
        responsible_person=update_in.responsible_person,
        events=events,
    )
    return ProcessStatusResult(
        **ProcessStatus.model_validate(row).model_dump(),
        instance_status=row.instance.status,
        work_order_status=row.instance.work_order.status,
    )


@router.put("/{instance_id}/processes/{process_id}/materials", response_model=MaterialUsage)
def record_material_usage(
    instance_id: int,
    process_id: int,
    usage_in: MaterialUsageRecord,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    return materials.record_material_usage(
        db, instance_id, process_id, usage_in.raw_material_id, usage_in.used_quantity, events=events
    )
