"""Work orders, component instances and instance groups."""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.events import ChangeEventType, EventBus
from app.core.exceptions import ConflictError, ValidationError
from app.db.models.component import Component, ComponentProcess
from app.db.models.order import InstanceGroup, Order
from app.db.models.work_order import ProcessStatus, ProgressStatus, WorkOrder, WorkOrderComponent
from app.schemas import work_order as schemas
from app.services.aggregation import refresh_instance_status, refresh_work_order_status
from app.services.common import get_or_raise, require_int, require_text, resolve_bus, serialize, transaction

logger = logging.getLogger(__name__)


@dataclass
class WorkOrderPage:
    work_orders: List[WorkOrder]
    total: int
    next_cursor: Optional[int] = None


def list_orders(db: Session) -> List[Order]:
    return db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()


def create_instance_group(
    db: Session,
    order_id: int,
    instance_name: str,
    instance_type: str,
    events: Optional[EventBus] = None,
) -> InstanceGroup:
    instance_name = require_text("instance_name", instance_name)
    instance_type = require_text("instance_type", instance_type)

    with transaction(db, f"creating instance group for order {order_id}"):
        get_or_raise(db, Order, order_id, "Order")
        existing = db.query(InstanceGroup).filter(
            InstanceGroup.order_id == order_id,
            InstanceGroup.instance_name == instance_name,
        ).first()
        if existing:
            raise ConflictError(f"Instance group {instance_name} already exists for order {order_id}")
        group = InstanceGroup(order_id=order_id, instance_name=instance_name, instance_type=instance_type)
        db.add(group)
        db.flush()

    db.refresh(group)
    resolve_bus(events).publish(ChangeEventType.INSTANCE_GROUP_CREATED, lambda: serialize(schemas.InstanceGroup, group))
    return group


def list_instance_groups(db: Session, order_id: int) -> List[InstanceGroup]:
    get_or_raise(db, Order, order_id, "Order")
    return (
        db.query(InstanceGroup)
        .filter(InstanceGroup.order_id == order_id)
        .order_by(InstanceGroup.id)
        .all()
    )


def create_work_order(
    db: Session,
    order_id: int,
    target_date: Optional[date] = None,
    instance_group_id: Optional[int] = None,
    events: Optional[EventBus] = None,
) -> WorkOrder:
    if target_date is not None and not isinstance(target_date, date):
        raise ValidationError("Invalid target_date: must be a date")

    with transaction(db, f"creating work order for order {order_id}"):
        get_or_raise(db, Order, order_id, "Order")
        if instance_group_id is not None:
            group = get_or_raise(db, InstanceGroup, instance_group_id, "Instance group")
            if group.order_id != order_id:
                raise ValidationError(f"Instance group {instance_group_id} does not belong to order {order_id}")
        work_order = WorkOrder(
            order_id=order_id,
            instance_group_id=instance_group_id,
            target_date=target_date,
            status=ProgressStatus.PENDING.value,
        )
        db.add(work_order)
        db.flush()

    db.refresh(work_order)
    logger.info(f"Created work order {work_order.id} for order {order_id}")
    resolve_bus(events).publish(ChangeEventType.WORK_ORDER_CREATED, lambda: serialize(schemas.WorkOrder, work_order))
    return work_order


def add_component_instance(
    db: Session,
    work_order_id: int,
    component_id: int,
    quantity: int,
    events: Optional[EventBus] = None,
) -> WorkOrderComponent:
    """
    Attach a component to a work order.

    Motor components get one process status row per process template in
    the same transaction, so a Motor instance never exists without them.
    """
    require_int("quantity", quantity, minimum=1)

    with transaction(db, f"adding component {component_id} to work order {work_order_id}"):
        work_order = get_or_raise(db, WorkOrder, work_order_id, "Work order")
        component = get_or_raise(db, Component, component_id, "Component")
        existing = db.query(WorkOrderComponent).filter(
            WorkOrderComponent.work_order_id == work_order_id,
            WorkOrderComponent.component_id == component_id,
        ).first()
        if existing:
            raise ConflictError(f"Component {component_id} is already attached to work order {work_order_id}")

        instance = WorkOrderComponent(
            work_order_id=work_order_id,
            component_id=component_id,
            quantity=quantity,
            status=ProgressStatus.PENDING.value,
        )
        db.add(instance)
        db.flush()

        if component.is_motor:
            templates = (
                db.query(ComponentProcess)
                .filter(ComponentProcess.component_id == component_id)
                .order_by(ComponentProcess.sequence)
                .all()
            )
            if not templates:
                raise ValidationError(f"Motor component {component.name} has no process templates")
            for template in templates:
                db.add(ProcessStatus(
                    instance_id=instance.id,
                    process_id=template.id,
                    completed_quantity=0,
                    in_use_quantity=0,
                    allowed_quantity=0,
                    status=ProgressStatus.PENDING.value,
                ))

        refresh_instance_status(db, instance)
        refresh_work_order_status(db, work_order)

    db.refresh(instance)
    logger.info(
        f"Added component {component_id} to work order {work_order_id} as instance {instance.id} "
        f"(quantity {quantity}, {len(instance.process_statuses)} processes)"
    )
    resolve_bus(events).publish(ChangeEventType.INSTANCE_ADDED, lambda: serialize(schemas.Instance, instance))
    return instance


def get_instance(db: Session, instance_id: int) -> WorkOrderComponent:
    return get_or_raise(db, WorkOrderComponent, instance_id, "Instance")


def get_work_order(db: Session, work_order_id: int) -> WorkOrder:
    return get_or_raise(db, WorkOrder, work_order_id, "Work order")


def list_work_orders(
    db: Session,
    order_id: int,
    instance_group_id: Optional[int] = None,
    responsible_person: Optional[str] = None,
    overdue: bool = False,
    limit: Optional[int] = None,
    cursor: Optional[int] = None,
) -> WorkOrderPage:
    """
    Newest-first page of an order's work orders.

    The cursor is the id of the last work order of the previous page.
    """
    get_or_raise(db, Order, order_id, "Order")
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))

    query = db.query(WorkOrder).filter(WorkOrder.order_id == order_id)
    if instance_group_id is not None:
        query = query.filter(WorkOrder.instance_group_id == instance_group_id)
    if responsible_person:
        assigned = (
            db.query(WorkOrderComponent.work_order_id)
            .join(ProcessStatus, ProcessStatus.instance_id == WorkOrderComponent.id)
            .join(ComponentProcess, ProcessStatus.process_id == ComponentProcess.id)
            .filter(or_(
                ProcessStatus.responsible_person == responsible_person,
                and_(
                    ProcessStatus.responsible_person.is_(None),
                    ComponentProcess.default_responsible == responsible_person,
                ),
            ))
        )
        query = query.filter(WorkOrder.id.in_(assigned))
    if overdue:
        query = query.filter(
            WorkOrder.target_date.isnot(None),
            WorkOrder.target_date < date.today(),
            WorkOrder.status != ProgressStatus.COMPLETED.value,
        )

    total = query.count()
    if cursor is not None:
        query = query.filter(WorkOrder.id < cursor)
    rows = query.order_by(WorkOrder.id.desc()).limit(limit).all()
    next_cursor = rows[-1].id if len(rows) == limit else None
    return WorkOrderPage(work_orders=rows, total=total, next_cursor=next_cursor)
