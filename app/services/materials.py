"""
Material allocation ledger.

The sum of an instance's allocations is its material pool, the capacity
every process of that instance draws from. Shrinking the pool below the
quantity currently in use reconciles the sibling processes downwards.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.events import ChangeEventType, EventBus
from app.core.exceptions import CapacityError, NotApplicableError, NotFoundError
from app.db.models.order import RawMaterial
from app.db.models.work_order import (
    ProcessMaterialUsage, ProcessStatus, ProgressStatus, WorkOrderComponent, WorkOrderMaterial
)
from app.schemas import work_order as schemas
from app.services.aggregation import derive_process_status, refresh_instance_status, refresh_work_order_status
from app.services.common import (
    get_or_raise, lock_instance, material_pool_total, require_int, resolve_bus, serialize, transaction
)

logger = logging.getLogger(__name__)


@dataclass
class ReconciledProcess:
    process_id: int
    previous_in_use_quantity: int
    in_use_quantity: int
    previous_completed_quantity: int
    completed_quantity: int
    status: str


@dataclass
class MaterialAssignment:
    allocation: WorkOrderMaterial
    material_pool: int
    reconciled: List[ReconciledProcess] = field(default_factory=list)


@dataclass
class MaterialPoolView:
    instance_id: int
    material_pool: int
    in_use_total: int
    headroom: int
    allocations: List[WorkOrderMaterial] = field(default_factory=list)


def _require_motor(instance: WorkOrderComponent, action: str) -> None:
    if not instance.component.is_motor:
        raise NotApplicableError(
            f"Cannot {action} for instance {instance.id}: component {instance.component.name} is not a Motor"
        )


def reconcile_processes(rows: List[ProcessStatus], new_total: int) -> List[ReconciledProcess]:
    """
    Bring every process of one instance in line with a new material pool.

    In-use quantities are scaled by new_total / old in-use sum (floored)
    when the old sum no longer fits. Completed processes keep their status
    with completed clamped to the pool. A change that would complete a
    process as a side effect is refused.
    """
    old_in_use = sum(row.in_use_quantity for row in rows)

    for row in rows:
        if (
            row.status != ProgressStatus.COMPLETED.value
            and new_total > 0
            and row.completed_quantity >= new_total
        ):
            raise CapacityError(
                f"Material pool of {new_total} would mark process {row.process_id} as completed "
                f"(completed quantity {row.completed_quantity}); record progress on the process instead",
                limit=new_total,
                attempted=row.completed_quantity,
                process_id=row.process_id,
            )

    reconciled = []
    for row in rows:
        previous_in_use = row.in_use_quantity
        previous_completed = row.completed_quantity
        if old_in_use > new_total:
            row.in_use_quantity = (row.in_use_quantity * new_total) // old_in_use
        if row.completed_quantity > new_total:
            row.completed_quantity = new_total
        row.status = derive_process_status(row.completed_quantity, row.in_use_quantity, new_total).value
        row.allowed_quantity = new_total
        if row.in_use_quantity != previous_in_use or row.completed_quantity != previous_completed:
            reconciled.append(ReconciledProcess(
                process_id=row.process_id,
                previous_in_use_quantity=previous_in_use,
                in_use_quantity=row.in_use_quantity,
                previous_completed_quantity=previous_completed,
                completed_quantity=row.completed_quantity,
                status=row.status,
            ))
    return reconciled


def assign_material(
    db: Session,
    instance_id: int,
    raw_material_id: int,
    quantity: int,
    events: Optional[EventBus] = None,
) -> MaterialAssignment:
    """
    Upsert one raw material line of an instance and recompute its pool.

    Side effect: when the new pool is smaller than the quantity currently
    in use across the instance's processes, every process's in-use
    quantity is scaled down proportionally, and completed quantities above
    the pool are clamped to it. Each adjustment is logged and returned in
    MaterialAssignment.reconciled.
    """
    require_int("quantity", quantity)

    with transaction(db, f"assigning raw material {raw_material_id} to instance {instance_id}"):
        instance = lock_instance(db, instance_id)
        _require_motor(instance, "assign material")
        get_or_raise(db, RawMaterial, raw_material_id, "Raw material")

        rows = (
            db.query(ProcessStatus)
            .filter(ProcessStatus.instance_id == instance_id)
            .order_by(ProcessStatus.id)
            .with_for_update()
            .all()
        )
        old_in_use = sum(row.in_use_quantity for row in rows)

        allocation = db.query(WorkOrderMaterial).filter(
            WorkOrderMaterial.instance_id == instance_id,
            WorkOrderMaterial.raw_material_id == raw_material_id,
        ).first()
        if allocation is None:
            allocation = WorkOrderMaterial(instance_id=instance_id, raw_material_id=raw_material_id, quantity=quantity)
            db.add(allocation)
        else:
            allocation.quantity = quantity
        db.flush()

        new_total = material_pool_total(db, instance_id)
        reconciled = reconcile_processes(rows, new_total)
        if reconciled:
            logger.warning(
                f"Material pool of instance {instance_id} reduced to {new_total} "
                f"(in use was {old_in_use}); reconciled processes: "
                + ", ".join(
                    f"{r.process_id} in-use {r.previous_in_use_quantity}->{r.in_use_quantity}"
                    f" completed {r.previous_completed_quantity}->{r.completed_quantity}"
                    for r in reconciled
                )
            )

        refresh_instance_status(db, instance)
        refresh_work_order_status(db, instance.work_order)

    db.refresh(allocation)
    logger.info(f"Assigned raw material {raw_material_id} x{quantity} to instance {instance_id}; pool is {new_total}")
    result = MaterialAssignment(allocation=allocation, material_pool=new_total, reconciled=reconciled)
    resolve_bus(events).publish(ChangeEventType.MATERIAL_ASSIGNED, lambda: serialize(schemas.MaterialAssignResult, result))
    return result


def list_allocations(db: Session, instance_id: int) -> List[WorkOrderMaterial]:
    get_or_raise(db, WorkOrderComponent, instance_id, "Instance")
    return (
        db.query(WorkOrderMaterial)
        .filter(WorkOrderMaterial.instance_id == instance_id)
        .order_by(WorkOrderMaterial.id)
        .all()
    )


def get_material_pool(db: Session, instance_id: int) -> MaterialPoolView:
    allocations = list_allocations(db, instance_id)
    pool = sum(a.quantity for a in allocations)
    in_use = sum(
        row.in_use_quantity
        for row in db.query(ProcessStatus).filter(ProcessStatus.instance_id == instance_id).all()
    )
    return MaterialPoolView(
        instance_id=instance_id,
        material_pool=pool,
        in_use_total=in_use,
        headroom=max(pool - in_use, 0),
        allocations=allocations,
    )


def record_material_usage(
    db: Session,
    instance_id: int,
    process_id: int,
    raw_material_id: int,
    used_quantity: int,
    events: Optional[EventBus] = None,
) -> ProcessMaterialUsage:
    """Upsert which raw material a process consumed; does not touch the pool accounting"""
    require_int("used_quantity", used_quantity)

    with transaction(db, f"recording material usage for process {process_id} of instance {instance_id}"):
        instance = lock_instance(db, instance_id)
        _require_motor(instance, "record material usage")
        process_row = db.query(ProcessStatus).filter(
            ProcessStatus.instance_id == instance_id,
            ProcessStatus.process_id == process_id,
        ).first()
        if process_row is None:
            raise NotFoundError(f"Process {process_id} not found for instance {instance_id}")
        get_or_raise(db, RawMaterial, raw_material_id, "Raw material")

        usage = db.query(ProcessMaterialUsage).filter(
            ProcessMaterialUsage.instance_id == instance_id,
            ProcessMaterialUsage.process_id == process_id,
            ProcessMaterialUsage.raw_material_id == raw_material_id,
        ).first()
        if usage is None:
            usage = ProcessMaterialUsage(
                instance_id=instance_id,
                process_id=process_id,
                raw_material_id=raw_material_id,
                used_quantity=used_quantity,
            )
            db.add(usage)
        else:
            usage.used_quantity = used_quantity
        db.flush()

    db.refresh(usage)
    resolve_bus(events).publish(ChangeEventType.MATERIAL_USAGE_RECORDED, lambda: serialize(schemas.MaterialUsage, usage))
    return usage
