"""
Tests for work orders, component instances and listing.
"""
from datetime import date, timedelta

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.db.models import Order, ProcessStatus
from app.services import process_status, registry, work_orders


class TestCreateWorkOrder:

    def test_create_work_order(self, db, order, bus):
        target = date.today() + timedelta(days=14)
        work_order = work_orders.create_work_order(db, order.id, target_date=target, events=bus)

        assert work_order.status == "Pending"
        assert work_order.target_date == target
        assert bus.types() == ["work_order_created"]
        assert bus.events[0].payload["orderId"] == order.id

    def test_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            work_orders.create_work_order(db, 999)

    def test_instance_group_of_same_order(self, db, order):
        group = work_orders.create_instance_group(db, order.id, "Machine A", "Press")

        work_order = work_orders.create_work_order(db, order.id, instance_group_id=group.id)

        assert work_order.instance_name == "Machine A"
        assert work_order.instance_type == "Press"

    def test_instance_group_of_other_order(self, db, order):
        other = Order(status="Pending")
        db.add(other)
        db.commit()
        group = work_orders.create_instance_group(db, other.id, "Machine B", "Press")

        with pytest.raises(ValidationError):
            work_orders.create_work_order(db, order.id, instance_group_id=group.id)

    def test_duplicate_instance_group(self, db, order):
        work_orders.create_instance_group(db, order.id, "Machine A", "Press")

        with pytest.raises(ConflictError):
            work_orders.create_instance_group(db, order.id, "Machine A", "Lathe")


class TestAddComponentInstance:

    def test_motor_instance_gets_one_row_per_process(self, db, work_order, motor, bus):
        instance = work_orders.add_component_instance(db, work_order.id, motor.id, 10, events=bus)

        assert instance.quantity == 10
        assert instance.status == "Pending"
        assert [p.process_name for p in instance.processes] == ["Winding", "Assembly"]
        for row in instance.processes:
            assert row.completed_quantity == 0
            assert row.in_use_quantity == 0
            assert row.allowed_quantity == 0
            assert row.status == "Pending"
            assert row.completion_date is None
        assert bus.types()[-1] == "instance_added"

    def test_non_motor_instance_has_no_processes(self, db, work_order, frame):
        instance = work_orders.add_component_instance(db, work_order.id, frame.id, 4)

        assert instance.processes == []
        assert instance.status == "Pending"

    def test_zero_quantity(self, db, work_order, motor):
        with pytest.raises(ValidationError):
            work_orders.add_component_instance(db, work_order.id, motor.id, 0)

    def test_non_integer_quantity(self, db, work_order, motor):
        with pytest.raises(ValidationError):
            work_orders.add_component_instance(db, work_order.id, motor.id, 2.5)

    def test_duplicate_component(self, db, work_order, motor, motor_instance):
        with pytest.raises(ConflictError):
            work_orders.add_component_instance(db, work_order.id, motor.id, 3)

    def test_motor_without_processes_is_rejected(self, db, work_order):
        bare = registry.register_component(db, "Motor 1HP", "Motor")

        with pytest.raises(ValidationError):
            work_orders.add_component_instance(db, work_order.id, bare.id, 1)

        assert db.query(ProcessStatus).count() == 0

    def test_unknown_work_order(self, db, motor):
        with pytest.raises(NotFoundError):
            work_orders.add_component_instance(db, 999, motor.id, 1)

    def test_later_templates_do_not_touch_existing_instances(self, db, motor, motor_instance):
        registry.register_process(db, motor.id, "Painting", 3)
        db.refresh(motor_instance)

        assert len(motor_instance.processes) == 2


class TestListWorkOrders:

    def _create(self, db, order, count, **kwargs):
        return [work_orders.create_work_order(db, order.id, **kwargs) for _ in range(count)]

    def test_newest_first_with_cursor(self, db, order):
        created = self._create(db, order, 5)
        ids = [w.id for w in created]

        first = work_orders.list_work_orders(db, order.id, limit=2)
        second = work_orders.list_work_orders(db, order.id, limit=2, cursor=first.next_cursor)
        third = work_orders.list_work_orders(db, order.id, limit=2, cursor=second.next_cursor)

        assert [w.id for w in first.work_orders] == [ids[4], ids[3]]
        assert [w.id for w in second.work_orders] == [ids[2], ids[1]]
        assert [w.id for w in third.work_orders] == [ids[0]]
        assert third.next_cursor is None
        assert first.total == 5

    def test_limit_is_clamped(self, db, order):
        self._create(db, order, 3)

        page = work_orders.list_work_orders(db, order.id, limit=100000)

        assert len(page.work_orders) == 3

    def test_filter_by_instance_group(self, db, order):
        group = work_orders.create_instance_group(db, order.id, "Machine A", "Press")
        grouped = work_orders.create_work_order(db, order.id, instance_group_id=group.id)
        self._create(db, order, 2)

        page = work_orders.list_work_orders(db, order.id, instance_group_id=group.id)

        assert [w.id for w in page.work_orders] == [grouped.id]

    def test_filter_by_responsible_person(self, db, order, motor, processes):
        first, second = self._create(db, order, 2)
        first_instance = work_orders.add_component_instance(db, first.id, motor.id, 5)
        work_orders.add_component_instance(db, second.id, motor.id, 5)
        process_status.update_process_status(
            db, first_instance.id, processes["Winding"], responsible_person="Meera"
        )

        meera = work_orders.list_work_orders(db, order.id, responsible_person="Meera")
        # Winding falls back to its template default while no person is recorded
        ravi = work_orders.list_work_orders(db, order.id, responsible_person="Ravi")

        assert [w.id for w in meera.work_orders] == [first.id]
        assert [w.id for w in ravi.work_orders] == [second.id]

    def test_overdue(self, db, order):
        late = work_orders.create_work_order(db, order.id, target_date=date.today() - timedelta(days=1))
        work_orders.create_work_order(db, order.id, target_date=date.today() + timedelta(days=1))
        work_orders.create_work_order(db, order.id)

        page = work_orders.list_work_orders(db, order.id, overdue=True)

        assert [w.id for w in page.work_orders] == [late.id]

    def test_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            work_orders.list_work_orders(db, 999)
