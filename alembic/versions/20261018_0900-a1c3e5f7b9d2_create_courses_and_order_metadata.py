"""create courses and course order metadata

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the courses table and the chain head singleton.

    This migration:
    1. Creates courses with the legacy order_index and the next_course_id pointer
    2. Indexes next_course_id (predecessor lookups) and order_index (legacy rebuild)
    3. Creates course_order_metadata holding first_course_id
    """
    op.create_table(
        'courses',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('instructor', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('order_index', sa.Integer(), nullable=True),
        sa.Column('next_course_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_courses_next_course_id', 'courses', ['next_course_id'], unique=False)
    op.create_index('idx_courses_order_index', 'courses', ['order_index'], unique=False)

    op.create_table(
        'course_order_metadata',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('first_course_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """
    Rollback: Drop both tables.
    """
    op.drop_table('course_order_metadata')
    op.drop_index('idx_courses_order_index', table_name='courses')
    op.drop_index('idx_courses_next_course_id', table_name='courses')
    op.drop_table('courses')
