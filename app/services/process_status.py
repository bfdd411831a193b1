"""
Capacity-constrained process progress updates.

Two limits apply to the processes of one instance, both taken against its
material pool (the sum of its allocations):

* the in-use quantities of all processes together may not exceed the pool
* a single process may not report more completed units than the pool

Process order (sequence) is informational only; a later process may
report progress before an earlier one completes.
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.core.events import ChangeEventType, EventBus
from app.core.exceptions import CapacityError, NotApplicableError, NotFoundError, ValidationError
from app.db.models.work_order import ProcessStatus, ProgressStatus
from app.schemas import work_order as schemas
from app.services.aggregation import derive_process_status, refresh_instance_status, refresh_work_order_status
from app.services.common import lock_instance, material_pool_total, require_int, resolve_bus, transaction

logger = logging.getLogger(__name__)


def update_process_status(
    db: Session,
    instance_id: int,
    process_id: int,
    completed_quantity: Optional[int] = None,
    in_use_quantity: Optional[int] = None,
    completion_date: Optional[date] = None,
    responsible_person: Optional[str] = None,
    events: Optional[EventBus] = None,
) -> ProcessStatus:
    if completed_quantity is not None:
        require_int("completed_quantity", completed_quantity)
    if in_use_quantity is not None:
        require_int("in_use_quantity", in_use_quantity)
    if completion_date is not None and not isinstance(completion_date, date):
        raise ValidationError("Invalid completion_date: must be a date")
    if responsible_person is not None and (not isinstance(responsible_person, str) or len(responsible_person) > 255):
        raise ValidationError("Invalid responsible_person: must be a string with max length 255")

    with transaction(db, f"updating process {process_id} of instance {instance_id}"):
        # The instance lock serializes every check-then-write on this pool
        instance = lock_instance(db, instance_id)
        if not instance.component.is_motor:
            raise NotApplicableError(
                f"Process tracking is not applicable to instance {instance_id}: "
                f"component {instance.component.name} is not a Motor"
            )
        pool = material_pool_total(db, instance_id)

        rows = (
            db.query(ProcessStatus)
            .filter(ProcessStatus.instance_id == instance_id)
            .order_by(ProcessStatus.id)
            .with_for_update()
            .all()
        )
        target = next((row for row in rows if row.process_id == process_id), None)
        if target is None:
            raise NotFoundError(f"Process {process_id} not found for instance {instance_id}")

        new_in_use = target.in_use_quantity if in_use_quantity is None else in_use_quantity
        new_completed = target.completed_quantity if completed_quantity is None else completed_quantity

        other_in_use = sum(row.in_use_quantity for row in rows if row is not target)
        if other_in_use + new_in_use > pool:
            headroom = max(pool - other_in_use, 0)
            raise CapacityError(
                f"Total in-use quantity ({other_in_use + new_in_use}) exceeds material pool ({pool}); "
                f"available for process {process_id}: {headroom}",
                limit=pool,
                attempted=other_in_use + new_in_use,
                headroom=headroom,
            )
        if new_completed > pool:
            raise CapacityError(
                f"Completed quantity ({new_completed}) exceeds material pool ({pool})",
                limit=pool,
                attempted=new_completed,
            )

        new_status = derive_process_status(new_completed, new_in_use, pool)
        was_completed = target.status == ProgressStatus.COMPLETED.value

        target.in_use_quantity = new_in_use
        target.completed_quantity = new_completed
        target.status = new_status.value
        if responsible_person is not None:
            target.responsible_person = responsible_person
        if completion_date is not None:
            target.completion_date = completion_date
        elif new_status == ProgressStatus.COMPLETED and not was_completed:
            target.completion_date = date.today()

        instance_status = refresh_instance_status(db, instance)
        work_order_status = refresh_work_order_status(db, instance.work_order)

        for row in rows:
            row.allowed_quantity = pool

    db.refresh(target)
    logger.info(
        f"Process {process_id} of instance {instance_id}: in use {new_in_use}, completed {new_completed}/{pool}, "
        f"{new_status.value}; instance {instance_status.value}, work order {work_order_status.value}"
    )

    def build_payload():
        result = schemas.ProcessStatusResult(
            **schemas.ProcessStatus.model_validate(target).model_dump(),
            instance_status=instance_status,
            work_order_status=work_order_status,
        )
        return result.model_dump(mode="json", by_alias=True)

    resolve_bus(events).publish(ChangeEventType.PROCESS_STATUS_UPDATED, build_payload)
    return target
