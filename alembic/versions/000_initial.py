"""Geo and route cache tables

Revision ID: 000
Revises: 
Create Date: 2026-02-10 08:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
import logging

logger = logging.getLogger(__name__)


# revision identifiers, used by Alembic.
revision = '000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    logger.info("📋 Checking table 'geo_cache'...")
    if not inspector.has_table('geo_cache'):
        op.create_table(
            'geo_cache',
            sa.Column('address_hash', sa.String(length=64), nullable=False),
            sa.Column('normalized_address', sa.String(), nullable=True),
            sa.Column('lat', sa.Float(), nullable=False),
            sa.Column('lng', sa.Float(), nullable=False),
            sa.Column('provider', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('address_hash')
        )
        logger.info("✅ Table 'geo_cache' created")
    else:
        logger.info("⏭️ Table 'geo_cache' already exists, skipping")

    logger.info("📋 Checking table 'route_cache'...")
    if not inspector.has_table('route_cache'):
        op.create_table(
            'route_cache',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('origin_lat', sa.Float(), nullable=False),
            sa.Column('origin_lng', sa.Float(), nullable=False),
            sa.Column('dest_lat', sa.Float(), nullable=False),
            sa.Column('dest_lng', sa.Float(), nullable=False),
            sa.Column('departure_bucket', sa.String(), nullable=False),
            sa.Column('duration_seconds', sa.Integer(), nullable=False),
            sa.Column('distance_meters', sa.Integer(), nullable=False),
            sa.Column('provider', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint(
                'origin_lat', 'origin_lng', 'dest_lat', 'dest_lng', 'departure_bucket',
                name='uq_route_cache_key'
            )
        )
        logger.info("✅ Table 'route_cache' created")
    else:
        logger.info("⏭️ Table 'route_cache' already exists, skipping")


def downgrade():
    op.drop_table('route_cache')
    op.drop_table('geo_cache')
