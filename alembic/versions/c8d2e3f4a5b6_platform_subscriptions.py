"""Platform subscriptions and profile rate check

Revision ID: c8d2e3f4a5b6
Revises: b7c1d2e3f4a5
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'c8d2e3f4a5b6'
down_revision: Union[str, None] = 'b7c1d2e3f4a5'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    payment_status_enum = postgresql.ENUM(
        'PENDING', 'PAID', 'REJECTED', 'CANCELLED', name='paymentstatus', create_type=False
    )

    op.create_table(
        'platform_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('max_clients', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('duration_days >= 1', name='ck_platform_plans_duration_days_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_platform_plans_id'), 'platform_plans', ['id'], unique=False)

    op.create_table(
        'platform_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('platform_plan_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('mp_status', sa.String(length=50), nullable=True),
        sa.Column('mp_payment_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['platform_plan_id'], ['platform_plans.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_platform_payments_id'), 'platform_payments', ['id'], unique=False)
    op.create_index(op.f('ix_platform_payments_user_id'), 'platform_payments', ['user_id'], unique=False)
    op.create_index(op.f('ix_platform_payments_mp_payment_id'), 'platform_payments', ['mp_payment_id'], unique=False)

    op.add_column('profiles', sa.Column('subscription_end', sa.DateTime(timezone=True), nullable=True))
    op.add_column('profiles', sa.Column('max_clients', sa.Integer(), nullable=True))
    op.create_check_constraint(
        'ck_profiles_messages_per_minute_positive', 'profiles', 'messages_per_minute >= 1'
    )


def downgrade() -> None:
    op.drop_constraint('ck_profiles_messages_per_minute_positive', 'profiles', type_='check')
    op.drop_column('profiles', 'max_clients')
    op.drop_column('profiles', 'subscription_end')
    op.drop_table('platform_payments')
    op.drop_table('platform_plans')
