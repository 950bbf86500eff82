"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

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
    # Establishments
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(8), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.Text()),
        sa.Column('city', sa.String(100)),
        sa.Column('province', sa.String(100)),
        sa.Column('type', sa.String(50)),
        sa.Column('nif', sa.String(50)),
        sa.Column('email', sa.String(255)),
        sa.Column('logo_url', sa.String(500)),
        sa.Column('lat', sa.Float(), nullable=False, server_default='0'),
        sa.Column('lng', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_accepting_orders', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('marketing_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('telegram_bot_token', sa.String(255)),
        sa.Column('telegram_chat_id', sa.String(100)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Staff accounts
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id')),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('role', sa.Enum('SUPER_ADMIN', 'COMPANY_ADMIN', 'STAFF', name='userrole')),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Menu
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('details', sa.Text()),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(100)),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('image_url', sa.String(500)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Queue tickets / orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('ticket_code', sa.String(4), nullable=False),
        sa.Column('ticket_number', sa.Integer()),
        sa.Column('customer_phone', sa.String(20), nullable=False),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('cancelled_by', sa.String(20)),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total', sa.Integer()),
        sa.Column('queue_position', sa.Integer()),
        sa.Column('estimated_minutes', sa.Integer()),
        sa.Column('timer_accumulated_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('timer_last_started_at', sa.DateTime()),
        sa.Column('order_type', sa.String(20), nullable=False, server_default='EAT_IN'),
        sa.Column('delivery_address', sa.Text()),
        sa.Column('delivery_coords', sa.JSON()),
        sa.Column('payment_method', sa.String(20)),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Customer registry
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('order_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_seen_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('company_id', 'phone'),
    )

    # SMS delivery log
    op.create_table(
        'sms_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('recipient', sa.String(30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('cost', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_products_company_id', 'products', ['company_id'])
    op.create_index('ix_orders_company_id', 'orders', ['company_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_customer_phone', 'orders', ['customer_phone'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_customers_company_id', 'customers', ['company_id'])
    op.create_index('ix_sms_logs_company_id', 'sms_logs', ['company_id'])
    op.create_index('ix_sms_logs_created_at', 'sms_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('sms_logs')
    op.drop_table('customers')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('users')
    op.drop_table('companies')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
