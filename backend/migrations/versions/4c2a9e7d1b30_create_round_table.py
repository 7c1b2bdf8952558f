"""create round table

Revision ID: 4c2a9e7d1b30
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2a9e7d1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'round',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.String(length=64), nullable=False),
        sa.Column('start_time', sa.BigInteger(), nullable=False),
        sa.Column('climbing_duration_ms', sa.Integer(), nullable=False),
        sa.Column('preparation_duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('preparation_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('stopped', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('round') as batch_op:
        batch_op.create_index(batch_op.f('ix_round_room_id'), ['room_id'], unique=True)


def downgrade():
    with op.batch_alter_table('round') as batch_op:
        batch_op.drop_index(batch_op.f('ix_round_room_id'))
    op.drop_table('round')
