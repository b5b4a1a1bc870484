"""Initial marketplace schema: users, products, purchases, earnings.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('active', 'suspended')", name='ck_user_status'),
    )

    op.create_table(
        'products',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('seller_id', sa.String(36), sa.ForeignKey('users.uuid', ondelete='CASCADE'), nullable=False),
        sa.Column('short_code', sa.String(6), nullable=False, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('mrp', sa.Numeric(10, 2), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('allow_download', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('file_path', sa.String(), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('review_status', sa.String(20), nullable=False, server_default='pending_review'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
    )
    op.create_index('idx_product_seller_id', 'products', ['seller_id'])

    op.create_table(
        'purchases',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('buyer_id', sa.String(36), sa.ForeignKey('users.uuid', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('products.uuid', ondelete='CASCADE'), nullable=False),
        # Nullable: free products never get a gateway order
        sa.Column('gateway_order_id', sa.String(255), nullable=True),
        sa.Column('gateway_payment_id', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('buyer_id', 'product_id', name='uq_buyer_product'),
        sa.CheckConstraint("status IN ('pending', 'paid', 'failed')", name='ck_purchase_status'),
    )
    op.create_index('idx_purchase_buyer_id', 'purchases', ['buyer_id'])
    op.create_index('idx_purchase_product_id', 'purchases', ['product_id'])
    op.create_index('idx_purchase_gateway_order_id', 'purchases', ['gateway_order_id'])

    op.create_table(
        'earnings',
        sa.Column('uuid', sa.String(36), primary_key=True),
        sa.Column('purchase_id', sa.String(36), sa.ForeignKey('purchases.uuid', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('seller_id', sa.String(36), sa.ForeignKey('users.uuid', ondelete='CASCADE'), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('platform_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('seller_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_earning_seller_id', 'earnings', ['seller_id'])


def downgrade():
    op.drop_index('idx_earning_seller_id', table_name='earnings')
    op.drop_table('earnings')
    op.drop_index('idx_purchase_gateway_order_id', table_name='purchases')
    op.drop_index('idx_purchase_product_id', table_name='purchases')
    op.drop_index('idx_purchase_buyer_id', table_name='purchases')
    op.drop_table('purchases')
    op.drop_index('idx_product_seller_id', table_name='products')
    op.drop_table('products')
    op.drop_table('users')
