from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.events import EventBus, event_bus


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_event_bus() -> EventBus:
    """
    The change-notification channel services publish to.
    Overridden in tests to observe emitted events.
    """
    return event_bus
