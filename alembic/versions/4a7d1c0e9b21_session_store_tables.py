"""session store tables

Revision ID: 4a7d1c0e9b21
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '4a7d1c0e9b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'active_session_pointer',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('active_session_id', sa.String(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'session_documents',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('document', postgresql.JSONB(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'archived_round_blocks',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('block_number', sa.Integer(), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lives', postgresql.JSONB(), nullable=False),
        sa.Column('history', postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'block_number'),
    )
    op.create_index('ix_archived_round_blocks_session_id', 'archived_round_blocks', ['session_id'])


def downgrade() -> None:
    op.drop_index('ix_archived_round_blocks_session_id', table_name='archived_round_blocks')
    op.drop_table('archived_round_blocks')
    op.drop_table('session_documents')
    op.drop_table('active_session_pointer')
