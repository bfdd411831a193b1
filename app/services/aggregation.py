"""
Derived status for processes, instances and work orders.

Statuses are always recomputed from the current child rows, never patched
incrementally, so a missed update cannot leave a stale counter behind.
"""
from typing import Iterable

from sqlalchemy.orm import Session

from app.db.models.component import Component, ProductType
from app.db.models.work_order import ProcessStatus, ProgressStatus, WorkOrder, WorkOrderComponent


def derive_process_status(completed_quantity: int, in_use_quantity: int, material_pool: int) -> ProgressStatus:
    if material_pool > 0 and completed_quantity >= material_pool:
        return ProgressStatus.COMPLETED
    if in_use_quantity > 0:
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.PENDING


def derive_rollup_status(statuses: Iterable[str]) -> ProgressStatus:
    """All Completed -> Completed, any non-Pending -> In Progress, else Pending"""
    statuses = [ProgressStatus(s) for s in statuses]
    if not statuses:
        return ProgressStatus.PENDING
    if all(s == ProgressStatus.COMPLETED for s in statuses):
        return ProgressStatus.COMPLETED
    if any(s != ProgressStatus.PENDING for s in statuses):
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.PENDING


def refresh_instance_status(db: Session, instance: WorkOrderComponent) -> ProgressStatus:
    db.flush()
    if not instance.component.is_motor:
        # NonMotor instances are tracked by quantity alone
        new_status = ProgressStatus.PENDING
    else:
        rows = db.query(ProcessStatus.status).filter(ProcessStatus.instance_id == instance.id).all()
        new_status = derive_rollup_status(row[0] for row in rows)
    instance.status = new_status.value
    return new_status


def refresh_work_order_status(db: Session, work_order: WorkOrder) -> ProgressStatus:
    """Recompute a work order from every process of every Motor instance under it"""
    db.flush()
    rows = (
        db.query(ProcessStatus.status)
        .join(WorkOrderComponent, ProcessStatus.instance_id == WorkOrderComponent.id)
        .join(Component, WorkOrderComponent.component_id == Component.id)
        .filter(
            WorkOrderComponent.work_order_id == work_order.id,
            Component.product_type == ProductType.MOTOR.value,
        )
        .all()
    )
    new_status = derive_rollup_status(row[0] for row in rows)
    work_order.status = new_status.value
    return new_status
