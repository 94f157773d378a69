# alembic/versions/0001_schedule_entries.py

"""Schedule entries table

Revision ID: 0001_schedule_entries
Revises:
Create Date: 2026-10-17 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_schedule_entries'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Creates the table holding both authoritative lists."""
    op.create_table(
        'schedule_entries',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('list_kind', sa.String(length=16), nullable=False, comment="recurring | ad_hoc"),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line', sa.String(), nullable=True),
        sa.Column('destination', sa.String(), nullable=False, server_default=''),
        sa.Column('plan_time', sa.String(length=8), nullable=True),
        sa.Column('actual_time', sa.String(length=8), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('date', sa.Date(), nullable=True, comment="Ad-hoc entries only"),
        sa.Column('weekday', sa.String(length=10), nullable=True),
        sa.Column('canceled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('stops', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_schedule_entries_list_kind', 'schedule_entries', ['list_kind'])
    op.create_index('ix_schedule_entries_kind_position', 'schedule_entries', ['list_kind', 'position'])


def downgrade() -> None:
    """Drops the schedule entries table."""
    op.drop_index('ix_schedule_entries_kind_position', table_name='schedule_entries')
    op.drop_index('ix_schedule_entries_list_kind', table_name='schedule_entries')
    op.drop_table('schedule_entries')
