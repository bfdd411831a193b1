"""Helpers shared by the engine services: transactions, lookups, input checks."""
from contextlib import contextmanager
from typing import Any, Optional, Type
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.events import EventBus, event_bus
from app.core.exceptions import EngineError, ConflictError, NotFoundError, ValidationError
from app.db.models.work_order import WorkOrderComponent, WorkOrderMaterial

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, action: str):
    """
    Run a block of writes as one unit and commit it.

    Any failure rolls the whole block back. Unique-constraint violations
    surface as ConflictError; other engine errors pass through unchanged.
    """
    try:
        yield
        db.commit()
    except EngineError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.warning(f"Integrity conflict while {action}: {error_msg}")
        raise ConflictError(f"Conflict while {action}: a record with the same unique key already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database error while {action}: {error_msg}", exc_info=True)
        raise
    except Exception:
        db.rollback()
        raise


def get_or_raise(db: Session, model: Type[Any], record_id: Any, label: str):
    record = db.get(model, record_id) if record_id is not None else None
    if record is None:
        raise NotFoundError(f"{label} {record_id} not found")
    return record


def lock_instance(db: Session, instance_id: int) -> WorkOrderComponent:
    """
    Load an instance row with a row-level lock held until commit/rollback.

    Every operation that reads the shared material pool or sibling process
    rows takes this lock first, so check-then-write sequences on one
    instance run one at a time.
    """
    instance = (
        db.query(WorkOrderComponent)
        .filter(WorkOrderComponent.id == instance_id)
        .with_for_update()
        .first()
    )
    if instance is None:
        raise NotFoundError(f"Instance {instance_id} not found")
    return instance


def material_pool_total(db: Session, instance_id: int) -> int:
    total = (
        db.query(func.coalesce(func.sum(WorkOrderMaterial.quantity), 0))
        .filter(WorkOrderMaterial.instance_id == instance_id)
        .scalar()
    )
    return int(total or 0)


def require_int(name: str, value: Any, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid {name}: must be an integer")
    if value < minimum:
        kind = "a positive" if minimum > 0 else "a non-negative"
        raise ValidationError(f"Invalid {name}: must be {kind} integer")
    return value


def require_text(name: str, value: Optional[str], max_length: int = 255) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {name}: must be a non-empty string")
    if len(value) > max_length:
        raise ValidationError(f"Invalid {name}: must be at most {max_length} characters")
    return value.strip()


def serialize(schema: Any, record: Any) -> dict:
    return schema.model_validate(record).model_dump(mode="json", by_alias=True)


def resolve_bus(events: Optional[EventBus]) -> EventBus:
    return events if events is not None else event_bus
