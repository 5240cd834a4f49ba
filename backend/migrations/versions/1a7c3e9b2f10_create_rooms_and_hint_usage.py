"""create rooms and hint_usage tables

Revision ID: 1a7c3e9b2f10
Revises:
Create Date: 2025-09-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a7c3e9b2f10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'rooms' not in existing_tables:
        op.create_table(
            'rooms',
            sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('time_remaining', sa.Integer(), nullable=False, server_default='3600'),
            sa.Column('is_running', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('hints_remaining', sa.Integer(), nullable=False, server_default='3'),
            sa.Column('last_message', sa.Text(), nullable=False, server_default=''),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'hint_usage' not in existing_tables:
        op.create_table(
            'hint_usage',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.Column('hint_id', sa.String(length=64), nullable=True),
            sa.Column('hint_text', sa.Text(), nullable=False),
            sa.Column('language', sa.String(length=16), nullable=False),
            sa.Column('sent_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_hint_usage_room_id', 'hint_usage', ['room_id'])


def downgrade():
    op.drop_index('ix_hint_usage_room_id', table_name='hint_usage')
    op.drop_table('hint_usage')
    op.drop_table('rooms')
