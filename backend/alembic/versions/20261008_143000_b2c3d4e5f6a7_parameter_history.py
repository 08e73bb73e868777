"""convert cws/bws parameters to dated history records

Revision ID: b2c3d4e5f6a7
Revises: a1b2c3d4e5f6
Create Date: 2026-10-08 14:30:00.000000

"""
from typing import Sequence, Union
from datetime import datetime
import uuid

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'b2c3d4e5f6a7'
down_revision: Union[str, None] = 'a1b2c3d4e5f6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CWS_VALUES = [
    'circulation_rate', 'temp_outlet', 'temp_return', 'temp_diff',
    'cws_hardness', 'makeup_hardness', 'concentration_cycles',
]
BWS_VALUES = ['steam_production']


def _history_table(name: str, values):
    return op.create_table(
        name,
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        *[sa.Column(v, sa.Float(), nullable=True) for v in values],
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )


def _single_row_table(name: str, values):
    return op.create_table(
        name,
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        *[sa.Column(v, sa.Float(), nullable=True) for v in values],
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('tank_id')
    )


def _convert_to_history(table: str, values) -> None:
    bind = op.get_bind()
    rows = bind.execute(
        sa.text(f"SELECT tank_id, {', '.join(values)}, updated_at FROM {table}")
    ).mappings().all()

    tmp = f"{table}_new"
    new_table = _history_table(tmp, values)
    now = datetime.utcnow()
    if rows:
        # Existing rows become the first history entry, dated at their last update
        op.bulk_insert(new_table, [
            {**dict(row), 'id': str(uuid.uuid4()), 'date': row['updated_at'] or now}
            for row in rows
        ])

    op.drop_table(table)
    op.rename_table(tmp, table)
    op.create_index(op.f(f'ix_{table}_tank_id'), table, ['tank_id'], unique=False)
    op.create_index(op.f(f'ix_{table}_date'), table, ['date'], unique=False)


def _convert_to_single_row(table: str, values) -> None:
    bind = op.get_bind()
    rows = bind.execute(
        sa.text(f"SELECT tank_id, {', '.join(values)}, date, updated_at FROM {table} ORDER BY date")
    ).mappings().all()

    # Keep the newest record per tank
    latest = {}
    for row in rows:
        latest[row['tank_id']] = {k: row[k] for k in ['tank_id', *values, 'updated_at']}

    op.drop_index(op.f(f'ix_{table}_date'), table_name=table)
    op.drop_index(op.f(f'ix_{table}_tank_id'), table_name=table)
    tmp = f"{table}_old"
    old_table = _single_row_table(tmp, values)
    if latest:
        op.bulk_insert(old_table, list(latest.values()))
    op.drop_table(table)
    op.rename_table(tmp, table)


def upgrade() -> None:
    _convert_to_history('cws_parameters', CWS_VALUES)
    _convert_to_history('bws_parameters', BWS_VALUES)


def downgrade() -> None:
    _convert_to_single_row('bws_parameters', BWS_VALUES)
    _convert_to_single_row('cws_parameters', CWS_VALUES)
