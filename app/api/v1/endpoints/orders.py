from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Any, Optional

from app.schemas.work_order import (
    Order, InstanceGroup, InstanceGroupCreate,
    WorkOrder, WorkOrderCreate, WorkOrderPage
)
from app.services import work_orders
from app.core.events import EventBus
from app.api.deps import get_db, get_event_bus

router = APIRouter()


@router.get("", response_model=List[Order])
def list_orders(db: Session = Depends(get_db)) -> Any:
    """Orders known to the engine, newest first"""
    return work_orders.list_orders(db)


@router.get("/{order_id}/instance-groups", response_model=List[InstanceGroup])
def list_instance_groups(order_id: int, db: Session = Depends(get_db)) -> Any:
    return work_orders.list_instance_groups(db, order_id)


@router.post("/{order_id}/instance-groups", response_model=InstanceGroup, status_code=status.HTTP_201_CREATED)
def create_instance_group(
    order_id: int,
    group_in: InstanceGroupCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    return work_orders.create_instance_group(
        db, order_id, group_in.instance_name, group_in.instance_type, events=events
    )


@router.get("/{order_id}/work-orders", response_model=WorkOrderPage)
def list_work_orders(
    order_id: int,
    instance_group_id: Optional[int] = None,
    responsible_person: Optional[str] = None,
    overdue: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[int] = None,
    db: Session = Depends(get_db)
) -> Any:
    """Work orders of an order with their instances, processes and stages"""
    page = work_orders.list_work_orders(
        db,
        order_id,
        instance_group_id=instance_group_id,
        responsible_person=responsible_person,
        overdue=overdue,
        limit=limit,
        cursor=cursor,
    )
    return WorkOrderPage.model_validate(page)


@router.post("/{order_id}/work-orders", response_model=WorkOrder, status_code=status.HTTP_201_CREATED)
def create_work_order(
    order_id: int,
    work_order_in: WorkOrderCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    return work_orders.create_work_order(
        db,
        order_id,
        target_date=work_order_in.target_date,
        instance_group_id=work_order_in.instance_group_id,
        events=events,
    )
