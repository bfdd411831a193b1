from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Any

from app.schemas.component import (
    Component, ComponentCreate,
    ComponentProcess, ComponentProcessCreate,
    ComponentMaterial, ComponentMaterialCreate, ComponentMaterialUpdate
)
from app.services import registry
from app.core.events import EventBus
from app.api.deps import get_db, get_event_bus

router = APIRouter()


@router.get("", response_model=List[Component])
def list_components(db: Session = Depends(get_db)) -> Any:
    """List component templates with their processes"""
    return registry.list_components(db)


@router.post("", response_model=Component, status_code=status.HTTP_201_CREATED)
def create_component(
    component_in: ComponentCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """Register a component template"""
    return registry.register_component(
        db,
        name=component_in.name,
        product_type=component_in.product_type,
        is_fixed=component_in.is_fixed,
        events=events,
    )


@router.get("/{component_id}", response_model=Component)
def get_component(component_id: int, db: Session = Depends(get_db)) -> Any:
    return registry.get_component(db, component_id)


@router.post("/{component_id}/processes", response_model=ComponentProcess, status_code=status.HTTP_201_CREATED)
def create_component_process(
    component_id: int,
    process_in: ComponentProcessCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """Register a manufacturing step under a component"""
    return registry.register_process(
        db,
        component_id,
        name=process_in.name,
        sequence=process_in.sequence,
        default_responsible=process_in.default_responsible,
        description=process_in.description,
        events=events,
    )


@router.get("/{component_id}/materials", response_model=List[ComponentMaterial])
def list_component_materials(component_id: int, db: Session = Depends(get_db)) -> Any:
    return registry.list_component_materials(db, component_id)


@router.post("/{component_id}/materials", response_model=ComponentMaterial, status_code=status.HTTP_201_CREATED)
def create_component_material(
    component_id: int,
    material_in: ComponentMaterialCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    """Register the default raw material requirement per unit"""
    return registry.register_component_material(
        db,
        component_id,
        raw_material_id=material_in.raw_material_id,
        quantity_per_unit=material_in.quantity_per_unit,
        required_quantity=material_in.required_quantity,
        events=events,
    )


@router.put("/{component_id}/materials/{material_id}", response_model=ComponentMaterial)
def update_component_material(
    component_id: int,
    material_id: int,
    material_in: ComponentMaterialUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus)
) -> Any:
    return registry.update_component_material(
        db,
        component_id,
        material_id,
        quantity_per_unit=material_in.quantity_per_unit,
        required_quantity=material_in.required_quantity,
        events=events,
    )
