"""
Tests for material allocation and pool reconciliation.
"""
import logging

import pytest

from app.core.exceptions import CapacityError, NotApplicableError, NotFoundError, ValidationError
from app.db.models import ProcessStatus, WorkOrderComponent, WorkOrderMaterial
from app.services import materials, process_status, work_orders


def _rows(db, instance_id):
    rows = db.query(ProcessStatus).filter(ProcessStatus.instance_id == instance_id).all()
    return {row.process_name: row for row in rows}


class TestAssignMaterial:

    def test_pool_is_sum_of_allocations(self, db, motor_instance, raw_materials, bus):
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 60, events=bus)
        result = materials.assign_material(db, motor_instance.id, raw_materials[1].id, 40, events=bus)

        assert result.material_pool == 100
        assert result.reconciled == []
        assert bus.types()[-2:] == ["material_assigned", "material_assigned"]
        assert bus.events[-1].payload["materialPool"] == 100

    def test_reassigning_replaces_quantity(self, db, motor_instance, raw_materials):
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 60)
        result = materials.assign_material(db, motor_instance.id, raw_materials[0].id, 25)

        assert result.material_pool == 25
        assert db.query(WorkOrderMaterial).filter(WorkOrderMaterial.instance_id == motor_instance.id).count() == 1

    def test_allowed_quantity_follows_pool(self, db, motor_instance, raw_materials):
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 70)

        assert {row.allowed_quantity for row in _rows(db, motor_instance.id).values()} == {70}

    def test_pool_view(self, db, motor_instance, raw_materials, processes):
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 100)
        process_status.update_process_status(db, motor_instance.id, processes["Winding"], in_use_quantity=30)

        view = materials.get_material_pool(db, motor_instance.id)

        assert view.material_pool == 100
        assert view.in_use_total == 30
        assert view.headroom == 70
        assert len(view.allocations) == 1

    def test_negative_quantity(self, db, motor_instance, raw_materials):
        with pytest.raises(ValidationError):
            materials.assign_material(db, motor_instance.id, raw_materials[0].id, -5)

    def test_unknown_raw_material(self, db, motor_instance):
        with pytest.raises(NotFoundError):
            materials.assign_material(db, motor_instance.id, 999, 5)

    def test_non_motor_instance(self, db, work_order, frame, raw_materials):
        instance = work_orders.add_component_instance(db, work_order.id, frame.id, 2)

        with pytest.raises(NotApplicableError):
            materials.assign_material(db, instance.id, raw_materials[0].id, 5)


class TestReconciliation:

    @pytest.fixture
    def busy_instance(self, db, motor_instance, raw_materials, processes):
        """Pool 100: Winding in use 60 and completed 100, Assembly in use 40."""
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 100)
        process_status.update_process_status(db, motor_instance.id, processes["Winding"], in_use_quantity=60)
        process_status.update_process_status(db, motor_instance.id, processes["Assembly"], in_use_quantity=40)
        process_status.update_process_status(db, motor_instance.id, processes["Winding"], completed_quantity=100)
        return motor_instance

    def test_shrinking_pool_scales_in_use(self, db, busy_instance, raw_materials, caplog):
        with caplog.at_level(logging.WARNING, logger="app.services.materials"):
            result = materials.assign_material(db, busy_instance.id, raw_materials[0].id, 80)

        rows = _rows(db, busy_instance.id)
        assert rows["Winding"].in_use_quantity == 48
        assert rows["Winding"].completed_quantity == 80
        assert rows["Winding"].status == "Completed"
        assert rows["Assembly"].in_use_quantity == 32
        assert rows["Assembly"].status == "In Progress"
        assert sum(row.in_use_quantity for row in rows.values()) <= 80
        assert result.material_pool == 80
        assert {r.in_use_quantity for r in result.reconciled} == {48, 32}
        assert "reconciled processes" in caplog.text

    def test_statuses_recomputed_after_shrink(self, db, busy_instance, raw_materials):
        materials.assign_material(db, busy_instance.id, raw_materials[0].id, 80)

        instance = db.get(WorkOrderComponent, busy_instance.id)
        assert instance.status == "In Progress"
        assert instance.work_order.status == "In Progress"

    def test_growing_pool_leaves_processes_alone(self, db, busy_instance, raw_materials):
        result = materials.assign_material(db, busy_instance.id, raw_materials[1].id, 20)

        rows = _rows(db, busy_instance.id)
        assert result.material_pool == 120
        assert result.reconciled == []
        assert rows["Winding"].in_use_quantity == 60
        assert rows["Winding"].status == "In Progress"
        assert rows["Assembly"].in_use_quantity == 40

    def test_shrink_cannot_complete_a_process(self, db, motor_instance, raw_materials, processes):
        materials.assign_material(db, motor_instance.id, raw_materials[0].id, 100)
        process_status.update_process_status(db, motor_instance.id, processes["Assembly"], completed_quantity=50)

        with pytest.raises(CapacityError):
            materials.assign_material(db, motor_instance.id, raw_materials[0].id, 50)

        rows = _rows(db, motor_instance.id)
        assert rows["Assembly"].completed_quantity == 50
        assert rows["Assembly"].status == "Pending"
        assert materials.get_material_pool(db, motor_instance.id).material_pool == 100

    def test_reconcile_processes_floor(self):
        rows = [
            ProcessStatus(process_id=1, in_use_quantity=2, completed_quantity=0, status="In Progress"),
            ProcessStatus(process_id=2, in_use_quantity=1, completed_quantity=0, status="In Progress"),
        ]

        reconciled = materials.reconcile_processes(rows, 2)

        assert [row.in_use_quantity for row in rows] == [1, 0]
        assert [row.status for row in rows] == ["In Progress", "Pending"]
        assert len(reconciled) == 2


class TestMaterialUsage:

    def test_record_and_update_usage(self, db, motor_instance, raw_materials, processes, bus):
        materials.record_material_usage(db, motor_instance.id, processes["Winding"], raw_materials[0].id, 3)
        usage = materials.record_material_usage(
            db, motor_instance.id, processes["Winding"], raw_materials[0].id, 7, events=bus
        )

        assert usage.used_quantity == 7
        assert bus.types()[-1] == "material_usage_recorded"
        assert materials.get_material_pool(db, motor_instance.id).material_pool == 0

    def test_unknown_process(self, db, motor_instance, raw_materials):
        with pytest.raises(NotFoundError):
            materials.record_material_usage(db, motor_instance.id, 999, raw_materials[0].id, 1)
