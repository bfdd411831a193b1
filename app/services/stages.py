"""Work order stage checklist (Assembly, Testing, PDI, Packing, Dispatch)."""
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.events import ChangeEventType, EventBus
from app.core.exceptions import ValidationError
from app.db.models.work_order import StageName, STAGE_ORDER, WorkOrder, WorkOrderStage
from app.schemas import work_order as schemas
from app.services.common import get_or_raise, resolve_bus, serialize, transaction

logger = logging.getLogger(__name__)


def update_stage(
    db: Session,
    work_order_id: int,
    stage_name,
    stage_date: date,
    events: Optional[EventBus] = None,
) -> WorkOrderStage:
    try:
        stage_name = StageName(stage_name)
    except ValueError:
        raise ValidationError(
            f"Invalid stage_name: must be {', '.join(s.value for s in StageName)}"
        )
    if not isinstance(stage_date, date):
        raise ValidationError("Invalid stage_date: must be a date")

    with transaction(db, f"updating stage {stage_name.value} of work order {work_order_id}"):
        get_or_raise(db, WorkOrder, work_order_id, "Work order")
        stage = db.query(WorkOrderStage).filter(
            WorkOrderStage.work_order_id == work_order_id,
            WorkOrderStage.stage_name == stage_name.value,
        ).first()
        if stage is None:
            stage = WorkOrderStage(work_order_id=work_order_id, stage_name=stage_name.value, stage_date=stage_date)
            db.add(stage)
        else:
            stage.stage_date = stage_date
        db.flush()

    db.refresh(stage)
    logger.info(f"Work order {work_order_id} stage {stage_name.value} set to {stage_date.isoformat()}")
    resolve_bus(events).publish(ChangeEventType.STAGE_UPDATED, lambda: serialize(schemas.Stage, stage))
    return stage


def list_stages(db: Session, work_order_id: int) -> List[WorkOrderStage]:
    get_or_raise(db, WorkOrder, work_order_id, "Work order")
    rows = db.query(WorkOrderStage).filter(WorkOrderStage.work_order_id == work_order_id).all()
    return sorted(rows, key=lambda s: STAGE_ORDER[s.stage_name])
