"""initial schema - create all tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create jobs table (status as VARCHAR)
    op.create_table(
        'jobs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('report_id', sa.String(36), nullable=False, unique=True, index=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='queued'),
        sa.Column('form_data', sa.Text(), nullable=False),
        sa.Column('preview_artifact_path', sa.Text(), nullable=True),
        sa.Column('full_artifact_path', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )

    # Create profiles table (role, plan and plan_status as VARCHAR)
    op.create_table(
        'profiles',
        sa.Column('user_id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(32), nullable=False, server_default='user'),
        sa.Column('plan', sa.String(32), nullable=False, server_default='free'),
        sa.Column('plan_status', sa.String(32), nullable=False, server_default='free'),
        sa.Column('plan_expiry', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )

    # Create subscriptions table
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('plan_name', sa.String(50), nullable=False),
        sa.Column('order_id', sa.String(100), nullable=False),
        sa.Column('payment_id', sa.String(100), nullable=False, unique=True),
        sa.Column('plan_start_date', sa.Date(), nullable=False),
        sa.Column('plan_expiry_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )


def downgrade() -> None:
    op.drop_table('subscriptions')
    op.drop_table('profiles')
    op.drop_table('jobs')
