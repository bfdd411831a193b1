"""
Tests for the component registry.
"""
import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.services import registry


class TestRegisterComponent:

    def test_register_component(self, db, bus):
        component = registry.register_component(db, "Motor 5HP", "Motor", events=bus)

        assert component.id is not None
        assert component.product_type == "Motor"
        assert component.is_motor
        assert component.is_fixed is False
        assert bus.types() == ["component_registered"]
        assert bus.events[0].payload["productType"] == "Motor"

    def test_non_motor_component(self, db):
        component = registry.register_component(db, "Frame", "NonMotor", is_fixed=True)

        assert not component.is_motor
        assert component.is_fixed is True

    def test_duplicate_name_conflicts(self, db):
        registry.register_component(db, "Motor 5HP", "Motor")

        with pytest.raises(ConflictError):
            registry.register_component(db, "Motor 5HP", "NonMotor")

    def test_unknown_product_type(self, db):
        with pytest.raises(ValidationError):
            registry.register_component(db, "Pump", "Hydraulic")

    def test_blank_name(self, db):
        with pytest.raises(ValidationError):
            registry.register_component(db, "   ", "Motor")


class TestRegisterProcess:

    def test_processes_listed_in_sequence_order(self, db, motor):
        registry.register_process(db, motor.id, "Testing", 0)
        db.refresh(motor)

        assert [p.name for p in motor.processes] == ["Testing", "Winding", "Assembly"]

    def test_duplicate_process_name(self, db, motor):
        with pytest.raises(ConflictError):
            registry.register_process(db, motor.id, "Winding", 5)

    def test_duplicate_sequence(self, db, motor):
        with pytest.raises(ConflictError) as exc_info:
            registry.register_process(db, motor.id, "Painting", 1)

        assert "Winding" in exc_info.value.message

    def test_negative_sequence(self, db, motor):
        with pytest.raises(ValidationError):
            registry.register_process(db, motor.id, "Painting", -1)

    def test_unknown_component(self, db):
        with pytest.raises(NotFoundError):
            registry.register_process(db, 999, "Winding", 1)

    def test_default_responsible_kept(self, db, motor):
        winding = next(p for p in motor.processes if p.name == "Winding")

        assert winding.default_responsible == "Ravi"


class TestComponentMaterials:

    def test_register_and_update(self, db, motor, raw_materials, bus):
        material = registry.register_component_material(db, motor.id, raw_materials[0].id, 5, 4, events=bus)

        updated = registry.update_component_material(db, motor.id, material.id, required_quantity=2, events=bus)

        assert updated.quantity_per_unit == 5
        assert updated.required_quantity == 2
        assert bus.types()[-2:] == ["component_material_updated", "component_material_updated"]
        assert [m.id for m in registry.list_component_materials(db, motor.id)] == [material.id]

    def test_per_unit_below_required(self, db, motor, raw_materials):
        with pytest.raises(ValidationError):
            registry.register_component_material(db, motor.id, raw_materials[0].id, 1, 3)

    def test_update_cannot_break_per_unit_rule(self, db, motor, raw_materials):
        material = registry.register_component_material(db, motor.id, raw_materials[0].id, 5, 4)

        with pytest.raises(ValidationError):
            registry.update_component_material(db, motor.id, material.id, quantity_per_unit=3)

        db.refresh(material)
        assert material.quantity_per_unit == 5

    def test_update_requires_a_field(self, db, motor, raw_materials):
        material = registry.register_component_material(db, motor.id, raw_materials[0].id, 5, 4)

        with pytest.raises(ValidationError):
            registry.update_component_material(db, motor.id, material.id)

    def test_duplicate_material(self, db, motor, raw_materials):
        registry.register_component_material(db, motor.id, raw_materials[0].id, 5, 4)

        with pytest.raises(ConflictError):
            registry.register_component_material(db, motor.id, raw_materials[0].id, 6, 6)

    def test_unknown_raw_material(self, db, motor):
        with pytest.raises(NotFoundError):
            registry.register_component_material(db, motor.id, 999, 1, 1)

    def test_material_of_other_component(self, db, motor, frame, raw_materials):
        material = registry.register_component_material(db, motor.id, raw_materials[0].id, 5, 4)

        with pytest.raises(NotFoundError):
            registry.update_component_material(db, frame.id, material.id, required_quantity=1)
