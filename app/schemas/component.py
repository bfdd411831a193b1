from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from app.db.models.component import ProductType


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes camelCase"""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


# Component Schemas
class ComponentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    product_type: ProductType
    is_fixed: bool = False


class ComponentProcessCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    sequence: int = Field(..., ge=0)
    default_responsible: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class ComponentProcess(CamelModel):
    id: int
    component_id: int
    name: str
    sequence: int
    default_responsible: Optional[str] = None
    description: Optional[str] = None


class Component(CamelModel):
    id: int
    name: str
    product_type: ProductType
    is_fixed: bool
    created_at: Optional[datetime] = None
    processes: List[ComponentProcess] = []


# Component Raw Material Schemas (design-time defaults, not enforced at runtime)
class ComponentMaterialCreate(CamelModel):
    raw_material_id: int
    quantity_per_unit: int = Field(..., ge=0)
    required_quantity: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_quantities(self):
        if self.quantity_per_unit < self.required_quantity:
            raise ValueError("quantity_per_unit must be at least required_quantity")
        return self


class ComponentMaterialUpdate(CamelModel):
    quantity_per_unit: Optional[int] = Field(None, ge=0)
    required_quantity: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_any_field(self):
        if self.quantity_per_unit is None and self.required_quantity is None:
            raise ValueError("At least one of quantity_per_unit or required_quantity must be provided")
        return self


class ComponentMaterial(CamelModel):
    id: int
    component_id: int
    raw_material_id: int
    quantity_per_unit: int
    required_quantity: int
