"""add free_hints_count to rooms

Revision ID: 5d2e8f41c6a3
Revises: 1a7c3e9b2f10
Create Date: 2025-09-14 18:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5d2e8f41c6a3'
down_revision = '1a7c3e9b2f10'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    cols = {c['name'] for c in sa.inspect(bind).get_columns('rooms')}
    if 'free_hints_count' not in cols:
        with op.batch_alter_table('rooms') as batch_op:
            batch_op.add_column(sa.Column('free_hints_count', sa.Integer(), nullable=False, server_default='3'))
        # Budgets above the new ceiling would break 0 <= remaining <= total
        op.execute("UPDATE rooms SET hints_remaining = free_hints_count WHERE hints_remaining > free_hints_count")


def downgrade():
    with op.batch_alter_table('rooms') as batch_op:
        batch_op.drop_column('free_hints_count')
