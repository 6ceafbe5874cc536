"""Initial order sync schema

Revision ID: 5d2a9e71c4b8
Revises:
Create Date: 2026-10-19 09:00:41.218734+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5d2a9e71c4b8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create shop_configurations table
    op.create_table('shop_configurations',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('base_url', sa.String(length=500), nullable=False),
    sa.Column('access_token', sa.String(length=500), nullable=False),
    sa.Column('model_version', sa.String(length=255), nullable=False),
    sa.Column('status_mapping', sa.JSON(), nullable=False),
    sa.Column('interval_seconds', sa.Integer(), nullable=True),
    sa.Column('calendar', sa.JSON(), nullable=True),
    sa.Column('start_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('stop_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('enabled', sa.Boolean(), nullable=False),
    sa.Column('status_message', sa.String(length=500), nullable=False),
    sa.Column('error_message', sa.Text(), nullable=True),
    sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('last_scheduled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('num_created', sa.Integer(), nullable=False),
    sa.Column('num_updated', sa.Integer(), nullable=False),
    sa.Column('num_resynced', sa.Integer(), nullable=False),
    sa.Column('num_failed', sa.Integer(), nullable=False),
    sa.Column('num_total', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    schema='order_sync'
    )
    op.create_index(op.f('ix_order_sync_shop_configurations_name'), 'shop_configurations', ['name'], unique=True, schema='order_sync')

    # Create model_transitions table
    op.create_table('model_transitions',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('model_version', sa.String(length=255), nullable=False),
    sa.Column('stage_id', sa.Integer(), nullable=False),
    sa.Column('activity_id', sa.Integer(), nullable=False),
    sa.Column('next_stage_id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    schema='order_sync'
    )
    op.create_index('ix_model_transitions_lookup', 'model_transitions', ['model_version', 'stage_id', 'activity_id'], unique=True, schema='order_sync')

    # Create order_cases table
    op.create_table('order_cases',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('order_key', sa.String(length=255), nullable=False),
    sa.Column('shop_id', sa.String(length=255), nullable=False),
    sa.Column('model_version', sa.String(length=255), nullable=False),
    sa.Column('stage_id', sa.Integer(), nullable=False),
    sa.Column('synced_stage_id', sa.Integer(), nullable=True),
    sa.Column('last_activity_id', sa.Integer(), nullable=True),
    sa.Column('snapshot', sa.JSON(), nullable=False),
    sa.Column('error', sa.Text(), nullable=False),
    sa.Column('order_id', sa.String(length=255), nullable=False),
    sa.Column('customer_name', sa.String(length=500), nullable=False),
    sa.Column('customer_email', sa.String(length=500), nullable=False),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    schema='order_sync'
    )
    op.create_index(op.f('ix_order_sync_order_cases_order_key'), 'order_cases', ['order_key'], unique=True, schema='order_sync')
    op.create_index('ix_order_cases_shop_stage', 'order_cases', ['shop_id', 'stage_id'], unique=False, schema='order_sync')


def downgrade() -> None:
    op.drop_index('ix_order_cases_shop_stage', table_name='order_cases', schema='order_sync')
    op.drop_index(op.f('ix_order_sync_order_cases_order_key'), table_name='order_cases', schema='order_sync')
    op.drop_table('order_cases', schema='order_sync')
    op.drop_index('ix_model_transitions_lookup', table_name='model_transitions', schema='order_sync')
    op.drop_table('model_transitions', schema='order_sync')
    op.drop_index(op.f('ix_order_sync_shop_configurations_name'), table_name='shop_configurations', schema='order_sync')
    op.drop_table('shop_configurations', schema='order_sync')
