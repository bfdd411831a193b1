"""
Shared fixtures for the engine tests.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_event_bus
from app.core.events import EventBus
from app.db.database import init_db
from app.db.models import Order, RawMaterial
from app.main import app
from app.services import registry, work_orders


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class RecordingBus(EventBus):
    """Event bus that keeps every published event for assertions."""

    def __init__(self):
        super().__init__()
        self.events = []
        self.subscribe(self.events.append)

    def types(self):
        return [event.type.value for event in self.events]


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def client(session_factory, bus):
    """FastAPI test client bound to the test database and recording bus."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: bus
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def order(db):
    order = Order(status="Pending")
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


@pytest.fixture
def raw_materials(db):
    materials = [RawMaterial(name="Copper wire", unit="kg"), RawMaterial(name="Steel sheet", unit="pcs")]
    db.add_all(materials)
    db.commit()
    for material in materials:
        db.refresh(material)
    return materials


@pytest.fixture
def motor(db, bus):
    """Motor component with two processes: Winding (1) and Assembly (2)."""
    component = registry.register_component(db, "Motor 5HP", "Motor", events=bus)
    registry.register_process(db, component.id, "Winding", 1, default_responsible="Ravi", events=bus)
    registry.register_process(db, component.id, "Assembly", 2, events=bus)
    db.refresh(component)
    return component


@pytest.fixture
def frame(db, bus):
    return registry.register_component(db, "Frame", "NonMotor", events=bus)


@pytest.fixture
def work_order(db, order, bus):
    return work_orders.create_work_order(db, order.id, events=bus)


@pytest.fixture
def motor_instance(db, work_order, motor, bus):
    return work_orders.add_component_instance(db, work_order.id, motor.id, 10, events=bus)


@pytest.fixture
def processes(motor):
    """Process template ids of the motor component keyed by name."""
    return {process.name: process.id for process in motor.processes}
