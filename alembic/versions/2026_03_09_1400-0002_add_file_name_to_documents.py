"""add_file_name_to_documents

Revision ID: 0002_add_file_name_to_documents
Revises: 0001_initial_schema
Create Date: 2026-03-09 14:00:00.000000

Adds the display-name column. Rows uploaded before this migration keep
file_name NULL; their names are backfilled from metadata.original_name.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_add_file_name_to_documents'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Check if column exists before adding (some deployments added it by hand)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    columns = [col['name'] for col in inspector.get_columns('documents')]

    if 'file_name' not in columns:
        op.add_column('documents', sa.Column('file_name', sa.String(length=255), nullable=True))
        print("Added file_name column to documents table")
    else:
        print("file_name column already exists")

    op.execute(
        "UPDATE documents SET file_name = metadata->>'original_name' "
        "WHERE file_name IS NULL AND metadata->>'original_name' IS NOT NULL"
    )


def downgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    columns = [col['name'] for col in inspector.get_columns('documents')]

    if 'file_name' in columns:
        op.drop_column('documents', 'file_name')
        print("Dropped file_name column from documents table")
