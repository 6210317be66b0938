"""device and service type catalog

Revision ID: 0002_catalog
Revises: 0001_initial
Create Date: 2026-10-20
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0002_catalog'
down_revision = '0001_initial'
branch_labels = None
depends_on = None

CATALOG_TABLES = ('device_types', 'service_types')


def upgrade():
    for table in CATALOG_TABLES:
        op.create_table(table,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=64), nullable=False, unique=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index(f'ix_{table}_sort_order', table, ['sort_order'])


def downgrade():
    for table in reversed(CATALOG_TABLES):
        op.drop_table(table)
