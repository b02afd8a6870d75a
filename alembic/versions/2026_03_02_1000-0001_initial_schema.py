"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-03-02 10:00:00.000000

Candidates, jobs, applications, interviews and documents. The documents
table is created as older deployments have it, without file_name; that
column comes with 0002_add_file_name_to_documents.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'candidates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('skills', postgresql.JSONB(), nullable=True),
        sa.Column('experience_years', sa.Integer(), nullable=True),
        sa.Column('current_location', sa.String(length=255), nullable=True),
        sa.Column('languages', postgresql.JSONB(), nullable=True),
        sa.Column('target_salary_range', postgresql.JSONB(), nullable=True),
        sa.Column('preferred_job_types', postgresql.JSONB(), nullable=True),
        sa.Column('willing_to_relocate', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_candidates_email', 'candidates', ['email'], unique=True)

    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('skills_required', postgresql.JSONB(), nullable=True),
        sa.Column('experience_level', sa.String(length=50), nullable=True),
        sa.Column('preferred_language', sa.String(length=50), nullable=True),
        sa.Column('salary_range', postgresql.JSONB(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('job_type', sa.String(length=50), nullable=True),
        sa.Column('is_remote', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_jobs_title', 'jobs', ['title'])

    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('job_id', sa.Uuid(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('applicant_id', sa.Uuid(), sa.ForeignKey('candidates.id'), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='applied'),
        sa.Column('is_invitation', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('applied_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('status_reason', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(), nullable=True),
        sa.Column('status_history', postgresql.JSONB(), nullable=True),
        sa.Column('match_score', sa.Integer(), nullable=True),
        sa.Column('resume_id', sa.Uuid(), nullable=True),
        sa.Column('cover_letter_id', sa.Uuid(), nullable=True),
        sa.Column('additional_document_ids', postgresql.JSONB(), nullable=True),
        sa.Column('custom_questions', postgresql.JSONB(), nullable=True),
        sa.Column('job_specific', postgresql.JSONB(), nullable=True),
        sa.Column('cover_note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('applicant_id', 'job_id', name='unique_applicant_job_application'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_applicant_id', 'applications', ['applicant_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])

    op.create_table(
        'interviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id'), nullable=True),
        sa.Column('job_id', sa.Uuid(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('candidate_id', sa.Uuid(), sa.ForeignKey('candidates.id'), nullable=False),
        sa.Column('interview_type', sa.String(length=50), nullable=True),
        sa.Column('format', sa.String(length=20), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('interviewer_ref', sa.String(length=255), nullable=True),
        sa.Column('meeting_link', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_interviews_application_id', 'interviews', ['application_id'])
    # Direct interviews are looked up by job/candidate pair
    op.create_index('ix_interviews_job_candidate', 'interviews', ['job_id', 'candidate_id'])
    op.create_index('ix_interviews_status', 'interviews', ['status'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('document_type', sa.String(length=30), nullable=False),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('file_type', sa.String(length=100), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verify_notes', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_documents_owner_id', 'documents', ['owner_id'])
    op.create_index('ix_documents_document_type', 'documents', ['document_type'])


def downgrade() -> None:
    op.drop_table('documents')
    op.drop_table('interviews')
    op.drop_table('applications')
    op.drop_table('jobs')
    op.drop_table('candidates')
