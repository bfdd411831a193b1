"""work order engine tables

Revision ID: 0001_work_order_engine
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_work_order_engine'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    ]


def upgrade() -> None:
    # =========================
    # Reference tables
    # =========================
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("target_delivery_date", sa.Date()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_orders_id", "orders", ["id"])

    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("unit", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_raw_materials_id", "raw_materials", ["id"])
    op.create_index("ix_raw_materials_name", "raw_materials", ["name"], unique=True)

    op.create_table(
        "instance_groups",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("instance_name", sa.String(), nullable=False),
        sa.Column("instance_type", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("order_id", "instance_name", name="uq_instance_group_order_name"),
    )
    op.create_index("ix_instance_groups_id", "instance_groups", ["id"])
    op.create_index("ix_instance_groups_order_id", "instance_groups", ["order_id"])

    # =========================
    # Component registry
    # =========================
    op.create_table(
        "components",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("product_type", sa.String(), nullable=False),
        sa.Column("is_fixed", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_components_id", "components", ["id"])
    op.create_index("ix_components_name", "components", ["name"], unique=True)

    op.create_table(
        "component_processes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("default_responsible", sa.String()),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("component_id", "name", name="uq_component_process_name"),
        sa.UniqueConstraint("component_id", "sequence", name="uq_component_process_sequence"),
    )
    op.create_index("ix_component_processes_id", "component_processes", ["id"])
    op.create_index("ix_component_processes_component_id", "component_processes", ["component_id"])

    op.create_table(
        "component_raw_materials",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id"), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("quantity_per_unit", sa.Integer(), nullable=False),
        sa.Column("required_quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("component_id", "raw_material_id", name="uq_component_raw_material"),
    )
    op.create_index("ix_component_raw_materials_id", "component_raw_materials", ["id"])
    op.create_index("ix_component_raw_materials_component_id", "component_raw_materials", ["component_id"])
    op.create_index("ix_component_raw_materials_raw_material_id", "component_raw_materials", ["raw_material_id"])

    # =========================
    # Work orders
    # =========================
    op.create_table(
        "work_orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("instance_group_id", sa.Integer(), sa.ForeignKey("instance_groups.id")),
        sa.Column("target_date", sa.Date()),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_work_orders_id", "work_orders", ["id"])
    op.create_index("ix_work_orders_order_id", "work_orders", ["order_id"])
    op.create_index("ix_work_orders_instance_group_id", "work_orders", ["instance_group_id"])
    op.create_index("ix_work_orders_created_at", "work_orders", ["created_at"])

    op.create_table(
        "work_order_components",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("work_order_id", sa.Integer(), sa.ForeignKey("work_orders.id"), nullable=False),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("work_order_id", "component_id", name="uq_work_order_component"),
    )
    op.create_index("ix_work_order_components_id", "work_order_components", ["id"])
    op.create_index("ix_work_order_components_work_order_id", "work_order_components", ["work_order_id"])
    op.create_index("ix_work_order_components_component_id", "work_order_components", ["component_id"])

    op.create_table(
        "work_order_materials",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("instance_id", sa.Integer(), sa.ForeignKey("work_order_components.id"), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("instance_id", "raw_material_id", name="uq_work_order_material"),
    )
    op.create_index("ix_work_order_materials_id", "work_order_materials", ["id"])
    op.create_index("ix_work_order_materials_instance_id", "work_order_materials", ["instance_id"])
    op.create_index("ix_work_order_materials_raw_material_id", "work_order_materials", ["raw_material_id"])

    op.create_table(
        "process_status",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("instance_id", sa.Integer(), sa.ForeignKey("work_order_components.id"), nullable=False),
        sa.Column("process_id", sa.Integer(), sa.ForeignKey("component_processes.id"), nullable=False),
        sa.Column("completed_quantity", sa.Integer(), nullable=False),
        sa.Column("in_use_quantity", sa.Integer(), nullable=False),
        sa.Column("allowed_quantity", sa.Integer(), nullable=False),
        sa.Column("completion_date", sa.Date()),
        sa.Column("responsible_person", sa.String()),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("instance_id", "process_id", name="uq_process_status_instance_process"),
    )
    op.create_index("ix_process_status_id", "process_status", ["id"])
    op.create_index("ix_process_status_instance_id", "process_status", ["instance_id"])
    op.create_index("ix_process_status_process_id", "process_status", ["process_id"])

    op.create_table(
        "process_material_usage",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("instance_id", sa.Integer(), sa.ForeignKey("work_order_components.id"), nullable=False),
        sa.Column("process_id", sa.Integer(), sa.ForeignKey("component_processes.id"), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("used_quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("instance_id", "process_id", "raw_material_id", name="uq_process_material_usage"),
    )
    op.create_index("ix_process_material_usage_id", "process_material_usage", ["id"])
    op.create_index("ix_process_material_usage_instance_id", "process_material_usage", ["instance_id"])
    op.create_index("ix_process_material_usage_process_id", "process_material_usage", ["process_id"])
    op.create_index("ix_process_material_usage_raw_material_id", "process_material_usage", ["raw_material_id"])

    op.create_table(
        "work_order_stages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("work_order_id", sa.Integer(), sa.ForeignKey("work_orders.id"), nullable=False),
        sa.Column("stage_name", sa.String(), nullable=False),
        sa.Column("stage_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("work_order_id", "stage_name", name="uq_work_order_stage"),
    )
    op.create_index("ix_work_order_stages_id", "work_order_stages", ["id"])
    op.create_index("ix_work_order_stages_work_order_id", "work_order_stages", ["work_order_id"])


def downgrade() -> None:
    op.drop_table("work_order_stages")
    op.drop_table("process_material_usage")
    op.drop_table("process_status")
    op.drop_table("work_order_materials")
    op.drop_table("work_order_components")
    op.drop_table("work_orders")
    op.drop_table("component_raw_materials")
    op.drop_table("component_processes")
    op.drop_table("components")
    op.drop_table("instance_groups")
    op.drop_table("raw_materials")
    op.drop_table("orders")
