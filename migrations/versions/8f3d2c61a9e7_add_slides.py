"""add homepage slides

Revision ID: 8f3d2c61a9e7
Revises: 5c1e9a7d2b40
Create Date: 2026-10-18 14:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8f3d2c61a9e7'
down_revision = '5c1e9a7d2b40'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'slides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=120), nullable=True),
        sa.Column('subtitle', sa.String(length=200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('media_type', sa.String(length=10), nullable=False),
        sa.Column('url', sa.String(length=1024), nullable=False),
        sa.Column('storage_key', sa.String(length=512), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_slides_sort_order'), 'slides', ['sort_order'], unique=False)
    op.create_index(op.f('ix_slides_is_visible'), 'slides', ['is_visible'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_slides_is_visible'), table_name='slides')
    op.drop_index(op.f('ix_slides_sort_order'), table_name='slides')
    op.drop_table('slides')
