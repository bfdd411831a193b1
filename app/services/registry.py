"""Component registry: component templates, process templates, default materials."""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.events import ChangeEventType, EventBus
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.db.models.component import Component, ComponentProcess, ComponentRawMaterial, ProductType
from app.db.models.order import RawMaterial
from app.schemas import component as schemas
from app.services.common import get_or_raise, require_int, require_text, resolve_bus, serialize, transaction

logger = logging.getLogger(__name__)


def register_component(
    db: Session,
    name: str,
    product_type,
    is_fixed: bool = False,
    events: Optional[EventBus] = None,
) -> Component:
    name = require_text("component name", name)
    try:
        product_type = ProductType(product_type)
    except ValueError:
        raise ValidationError(f"Invalid product_type: must be one of {', '.join(p.value for p in ProductType)}")

    with transaction(db, f"registering component {name}"):
        if db.query(Component).filter(Component.name == name).first():
            raise ConflictError(f"Component {name} already exists")
        component = Component(name=name, product_type=product_type.value, is_fixed=bool(is_fixed))
        db.add(component)
        db.flush()

    db.refresh(component)
    logger.info(f"Registered component {component.id} ({name}, {product_type.value})")
    resolve_bus(events).publish(ChangeEventType.COMPONENT_REGISTERED, lambda: serialize(schemas.Component, component))
    return component


def register_process(
    db: Session,
    component_id: int,
    name: str,
    sequence: int,
    default_responsible: Optional[str] = None,
    description: Optional[str] = None,
    events: Optional[EventBus] = None,
) -> ComponentProcess:
    name = require_text("process name", name)
    require_int("sequence", sequence, minimum=0)

    with transaction(db, f"registering process {name} for component {component_id}"):
        get_or_raise(db, Component, component_id, "Component")
        duplicate = db.query(ComponentProcess).filter(
            ComponentProcess.component_id == component_id,
            (ComponentProcess.name == name) | (ComponentProcess.sequence == sequence),
        ).first()
        if duplicate:
            if duplicate.name == name:
                raise ConflictError(f"Process {name} already exists for component {component_id}")
            raise ConflictError(f"Sequence {sequence} is already used by process {duplicate.name} of component {component_id}")
        process = ComponentProcess(
            component_id=component_id,
            name=name,
            sequence=sequence,
            default_responsible=default_responsible,
            description=description,
        )
        db.add(process)
        db.flush()

    db.refresh(process)
    logger.info(f"Registered process {process.id} ({name}, sequence {sequence}) for component {component_id}")
    resolve_bus(events).publish(ChangeEventType.PROCESS_REGISTERED, lambda: serialize(schemas.ComponentProcess, process))
    return process


def register_component_material(
    db: Session,
    component_id: int,
    raw_material_id: int,
    quantity_per_unit: int,
    required_quantity: int,
    events: Optional[EventBus] = None,
) -> ComponentRawMaterial:
    """Record the default raw material need of one unit of a component"""
    require_int("quantity_per_unit", quantity_per_unit)
    require_int("required_quantity", required_quantity)
    if quantity_per_unit < required_quantity:
        raise ValidationError("Invalid input: quantity_per_unit must be at least required_quantity")

    with transaction(db, f"assigning raw material {raw_material_id} to component {component_id}"):
        get_or_raise(db, Component, component_id, "Component")
        get_or_raise(db, RawMaterial, raw_material_id, "Raw material")
        existing = db.query(ComponentRawMaterial).filter(
            ComponentRawMaterial.component_id == component_id,
            ComponentRawMaterial.raw_material_id == raw_material_id,
        ).first()
        if existing:
            raise ConflictError(f"Raw material {raw_material_id} is already assigned to component {component_id}")
        material = ComponentRawMaterial(
            component_id=component_id,
            raw_material_id=raw_material_id,
            quantity_per_unit=quantity_per_unit,
            required_quantity=required_quantity,
        )
        db.add(material)
        db.flush()

    db.refresh(material)
    resolve_bus(events).publish(ChangeEventType.COMPONENT_MATERIAL_UPDATED, lambda: serialize(schemas.ComponentMaterial, material))
    return material


def update_component_material(
    db: Session,
    component_id: int,
    material_id: int,
    quantity_per_unit: Optional[int] = None,
    required_quantity: Optional[int] = None,
    events: Optional[EventBus] = None,
) -> ComponentRawMaterial:
    if quantity_per_unit is None and required_quantity is None:
        raise ValidationError("Invalid input: at least one of quantity_per_unit or required_quantity must be provided")
    if quantity_per_unit is not None:
        require_int("quantity_per_unit", quantity_per_unit)
    if required_quantity is not None:
        require_int("required_quantity", required_quantity)

    with transaction(db, f"updating material {material_id} of component {component_id}"):
        get_or_raise(db, Component, component_id, "Component")
        material = db.query(ComponentRawMaterial).filter(
            ComponentRawMaterial.id == material_id,
            ComponentRawMaterial.component_id == component_id,
        ).first()
        if not material:
            raise NotFoundError(f"Material {material_id} not found for component {component_id}")
        if quantity_per_unit is not None:
            material.quantity_per_unit = quantity_per_unit
        if required_quantity is not None:
            material.required_quantity = required_quantity
        if material.quantity_per_unit < material.required_quantity:
            raise ValidationError("Invalid input: quantity_per_unit must be at least required_quantity")

    db.refresh(material)
    resolve_bus(events).publish(ChangeEventType.COMPONENT_MATERIAL_UPDATED, lambda: serialize(schemas.ComponentMaterial, material))
    return material


def list_components(db: Session) -> List[Component]:
    return db.query(Component).order_by(Component.name).all()


def get_component(db: Session, component_id: int) -> Component:
    return get_or_raise(db, Component, component_id, "Component")


def list_component_materials(db: Session, component_id: int) -> List[ComponentRawMaterial]:
    get_or_raise(db, Component, component_id, "Component")
    return (
        db.query(ComponentRawMaterial)
        .filter(ComponentRawMaterial.component_id == component_id)
        .order_by(ComponentRawMaterial.id)
        .all()
    )
