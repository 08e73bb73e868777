"""initial schema: tanks, supplies, readings, parameters, notes, alerts

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tanks',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('system_type', sa.String(length=50), nullable=False),
        sa.Column('capacity_liters', sa.Float(), nullable=False),
        sa.Column('geo_factor', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('safe_min_level', sa.Float(), nullable=True),
        sa.Column('target_daily_usage', sa.Float(), nullable=True),
        sa.Column('calculation_method', sa.String(length=50), nullable=True),
        sa.Column('shape_type', sa.String(length=50), nullable=True),
        sa.Column('dimensions', sa.JSON(), nullable=True),
        sa.Column('input_unit', sa.String(length=10), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('validation_threshold', sa.Float(), nullable=True),
        sa.Column('max_capacity_warning_kg', sa.Float(), nullable=True),
        sa.Column('sg_range_min', sa.Float(), nullable=True),
        sa.Column('sg_range_max', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('capacity_liters > 0', name='check_capacity_positive'),
        sa.CheckConstraint('geo_factor > 0', name='check_geo_factor_positive'),
        sa.CheckConstraint('safe_min_level >= 0 AND safe_min_level <= 100', name='check_safe_min_level_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tanks_system_type'), 'tanks', ['system_type'], unique=False)

    op.create_table(
        'chemical_supplies',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('supplier_name', sa.String(length=100), nullable=False),
        sa.Column('chemical_name', sa.String(length=100), nullable=True),
        sa.Column('specific_gravity', sa.Float(), nullable=False),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('target_ppm', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('specific_gravity > 0', name='check_sg_positive'),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chemical_supplies_tank_id'), 'chemical_supplies', ['tank_id'], unique=False)
    op.create_index(op.f('ix_chemical_supplies_start_date'), 'chemical_supplies', ['start_date'], unique=False)

    op.create_table(
        'readings',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('level_cm', sa.Float(), nullable=False),
        sa.Column('calculated_volume', sa.Float(), nullable=False),
        sa.Column('calculated_weight_kg', sa.Float(), nullable=False),
        sa.Column('applied_sg', sa.Float(), nullable=False),
        sa.Column('sg_overridden', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('supply_id', sa.String(length=50), nullable=True),
        sa.Column('added_amount_liters', sa.Float(), nullable=True),
        sa.Column('operator_name', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supply_id'], ['chemical_supplies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_readings_tank_id'), 'readings', ['tank_id'], unique=False)
    op.create_index(op.f('ix_readings_timestamp'), 'readings', ['timestamp'], unique=False)
    op.create_index('ix_readings_tank_timestamp', 'readings', ['tank_id', 'timestamp'], unique=False)

    # One parameter row per tank; converted to dated history in the next revision
    op.create_table(
        'cws_parameters',
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('circulation_rate', sa.Float(), nullable=True),
        sa.Column('temp_outlet', sa.Float(), nullable=True),
        sa.Column('temp_return', sa.Float(), nullable=True),
        sa.Column('temp_diff', sa.Float(), nullable=True),
        sa.Column('cws_hardness', sa.Float(), nullable=True),
        sa.Column('makeup_hardness', sa.Float(), nullable=True),
        sa.Column('concentration_cycles', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('tank_id')
    )
    op.create_table(
        'bws_parameters',
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('steam_production', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('tank_id')
    )

    op.create_table(
        'important_notes',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('date_str', sa.String(length=10), nullable=True),
        sa.Column('area', sa.String(length=100), nullable=True),
        sa.Column('chemical_name', sa.String(length=100), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=True),
        sa.Column('tank_id', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_important_notes_date_str'), 'important_notes', ['date_str'], unique=False)
    op.create_index(op.f('ix_important_notes_tank_id'), 'important_notes', ['tank_id'], unique=False)

    op.create_table(
        'fluctuation_alerts',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('tank_name', sa.String(length=100), nullable=True),
        sa.Column('date_str', sa.String(length=10), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('prev_value', sa.Float(), nullable=True),
        sa.Column('next_value', sa.Float(), nullable=True),
        sa.Column('is_possible_refill', sa.Boolean(), nullable=True),
        sa.Column('source', sa.String(length=20), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('dismissed', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_fluctuation_alerts_tank_id'), 'fluctuation_alerts', ['tank_id'], unique=False)
    op.create_index(op.f('ix_fluctuation_alerts_date_str'), 'fluctuation_alerts', ['date_str'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_fluctuation_alerts_date_str'), table_name='fluctuation_alerts')
    op.drop_index(op.f('ix_fluctuation_alerts_tank_id'), table_name='fluctuation_alerts')
    op.drop_table('fluctuation_alerts')
    op.drop_index(op.f('ix_important_notes_tank_id'), table_name='important_notes')
    op.drop_index(op.f('ix_important_notes_date_str'), table_name='important_notes')
    op.drop_table('important_notes')
    op.drop_table('bws_parameters')
    op.drop_table('cws_parameters')
    op.drop_index('ix_readings_tank_timestamp', table_name='readings')
    op.drop_index(op.f('ix_readings_timestamp'), table_name='readings')
    op.drop_index(op.f('ix_readings_tank_id'), table_name='readings')
    op.drop_table('readings')
    op.drop_index(op.f('ix_chemical_supplies_start_date'), table_name='chemical_supplies')
    op.drop_index(op.f('ix_chemical_supplies_tank_id'), table_name='chemical_supplies')
    op.drop_table('chemical_supplies')
    op.drop_index(op.f('ix_tanks_system_type'), table_name='tanks')
    op.drop_table('tanks')
