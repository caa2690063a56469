"""settlement ledger: users, stores, products, orders, payouts, revenue, webhook logs, alerts

Revision ID: 3c9e1a7b5d20
Revises:
Create Date: 2026-10-19 09:10:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9e1a7b5d20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('plan_tier', sa.String(length=32), nullable=True),
        sa.Column('plan_interval', sa.String(length=16), nullable=True),
        sa.Column('has_access', sa.Boolean(), nullable=False),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('referred_by', sa.String(length=64), nullable=True),
        sa.Column('active_referral_count', sa.Integer(), nullable=False),
        sa.Column('total_referral_earnings', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_referred_by'), ['referred_by'], unique=False)

    op.create_table(
        'stores',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('stores', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_stores_owner_id'), ['owner_id'], unique=False)

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('wholesale_price', sa.Float(), nullable=False),
        sa.Column('suggested_retail_price', sa.Float(), nullable=False),
        sa.Column('vendor_id', sa.String(length=64), nullable=True),
        sa.Column('is_managed_by_soma', sa.Boolean(), nullable=False),
        sa.Column('store_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_vendor_id'), ['vendor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_store_id'), ['store_id'], unique=False)

    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=160), nullable=False),
        sa.Column('store_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('items', sa.Text(), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer', sa.Text(), nullable=True),
        sa.Column('shipping_address', sa.Text(), nullable=True),
        sa.Column('payment_reference', sa.String(length=128), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_payment_reference'), ['payment_reference'], unique=True)

    op.create_table(
        'payouts_pending',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=24), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('order_id', sa.String(length=160), nullable=True),
        sa.Column('payment_reference', sa.String(length=128), nullable=False),
        sa.Column('referred_user_id', sa.String(length=64), nullable=True),
        sa.Column('idempotency_key', sa.String(length=200), nullable=False),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('matures_at', sa.DateTime(), nullable=True),
        sa.Column('matured_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
    )
    with op.batch_alter_table('payouts_pending', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payouts_pending_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payouts_pending_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_payouts_pending_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payouts_pending_payment_reference'), ['payment_reference'], unique=False)

    op.create_table(
        'revenue_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=False),
        sa.Column('idempotency_key', sa.String(length=200), nullable=False),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
    )
    with op.batch_alter_table('revenue_log', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_revenue_log_reference'), ['reference'], unique=False)

    op.create_table(
        'webhook_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider', sa.String(length=32), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('payload', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('note', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('webhook_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_webhook_logs_reference'), ['reference'], unique=False)

    op.create_table(
        'system_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('system_alerts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_system_alerts_reference'), ['reference'], unique=False)


def downgrade():
    op.drop_table('system_alerts')
    op.drop_table('webhook_logs')
    op.drop_table('revenue_log')
    op.drop_table('payouts_pending')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('stores')
    op.drop_table('users')
