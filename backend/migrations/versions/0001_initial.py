"""users, orders, order images and order logs

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('phone', sa.String(length=32), nullable=False, unique=True),
        sa.Column('name', sa.String(length=128), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_phone', 'users', ['phone'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('device_type', sa.String(length=64), nullable=False),
        sa.Column('device_model', sa.String(length=128), nullable=False),
        sa.Column('service_type', sa.String(length=64), nullable=False),
        sa.Column('appointment_service', sa.String(length=64), nullable=True),
        sa.Column('liquid_metal', sa.Boolean(), nullable=True),
        sa.Column('problem_description', sa.Text(), nullable=True),
        sa.Column('issue_description', sa.Text(), nullable=True),
        sa.Column('service_details', sa.Text(), nullable=True),
        sa.Column('urgency', sa.String(length=16), nullable=False, server_default='normal'),
        sa.Column('contact_name', sa.String(length=128), nullable=False),
        sa.Column('contact_phone', sa.String(length=32), nullable=False),
        sa.Column('appointment_time', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_assigned_to', 'orders', ['assigned_to'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table('order_images',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=False),
        sa.Column('image_type', sa.String(length=32), nullable=False, server_default='problem'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_order_images_order_id', 'order_images', ['order_id'])

    op.create_table('order_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_order_logs_order_id', 'order_logs', ['order_id'])
    op.create_index('ix_order_logs_user_id', 'order_logs', ['user_id'])
    op.create_index('ix_order_logs_action', 'order_logs', ['action'])


def downgrade():
    op.drop_table('order_logs')
    op.drop_table('order_images')
    op.drop_table('orders')
    op.drop_table('users')
