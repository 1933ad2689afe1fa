"""create_recruitment_pipeline_tables

Revision ID: 3a7f1c2e9b40
Revises:
Create Date: 2026-10-18 09:12:44.517203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3a7f1c2e9b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'staff_users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column(
            'role',
            sa.Enum('ADMIN', 'RECRUITER', 'ACCOUNT_MANAGER', 'MARKETING', 'CV_UPLOADER', 'VIEWER', name='staffrole'),
            nullable=False,
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_staff_users_id', 'staff_users', ['id'])
    op.create_index('ix_staff_users_email', 'staff_users', ['email'])
    op.create_index('ix_staff_users_role', 'staff_users', ['role'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('client_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_id', 'jobs', ['id'])
    op.create_index('ix_jobs_title', 'jobs', ['title'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_created_at', 'jobs', ['created_at'])

    op.create_table(
        'candidates',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email_normalized', sa.String(length=255), nullable=True),
        sa.Column('phone_digits', sa.String(length=50), nullable=True),
        sa.Column('last_contact_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('consent_given_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('consent_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('anonymised_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('gdpr_notes', sa.Text(), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('current_salary', sa.Integer(), nullable=True),
        sa.Column('salary_expectation', sa.Integer(), nullable=True),
        sa.Column('employment_history', sa.JSON(), nullable=True),
        sa.Column('qualifications', sa.JSON(), nullable=True),
        sa.Column('skills', sa.JSON(), nullable=True),
        sa.Column('experience_summary', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('confidence_score', sa.Integer(), nullable=True),
        sa.Column('suggested_status', sa.String(length=50), nullable=True),
        sa.Column('ai_reasoning', sa.Text(), nullable=True),
        sa.Column('ai_profile', sa.JSON(), nullable=True),
        sa.Column('potential_duplicate_of', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['potential_duplicate_of'], ['candidates.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_candidates_id', 'candidates', ['id'])
    op.create_index('ix_candidates_email', 'candidates', ['email'])
    op.create_index('ix_candidates_email_normalized', 'candidates', ['email_normalized'])
    op.create_index('ix_candidates_phone_digits', 'candidates', ['phone_digits'])
    op.create_index('ix_candidates_last_contact_date', 'candidates', ['last_contact_date'])
    op.create_index('ix_candidates_anonymised_at', 'candidates', ['anonymised_at'])
    op.create_index('ix_candidates_created_at', 'candidates', ['created_at'])

    op.create_table(
        'pipeline_entries',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('job_id', sa.UUID(), nullable=False),
        sa.Column('candidate_id', sa.UUID(), nullable=False),
        sa.Column('stage', sa.String(length=25), nullable=False, server_default='sourced'),
        sa.Column('paused_from_stage', sa.String(length=25), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('assigned_to', sa.UUID(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('stage_entered_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_to'], ['staff_users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('job_id', 'candidate_id', name='uq_pipeline_entries_job_candidate'),
        sa.CheckConstraint(
            "stage IN ('sourced', 'contacted', 'qualified', 'submitted', 'interview_1', 'interview_2', "
            "'final', 'offer', 'accepted', 'placed', 'rejected', 'on_hold')",
            name='check_pipeline_stage'
        ),
    )
    op.create_index('ix_pipeline_entries_id', 'pipeline_entries', ['id'])
    op.create_index('ix_pipeline_entries_job_id', 'pipeline_entries', ['job_id'])
    op.create_index('ix_pipeline_entries_candidate_id', 'pipeline_entries', ['candidate_id'])
    op.create_index('ix_pipeline_entries_stage', 'pipeline_entries', ['stage'])
    op.create_index('ix_pipeline_entries_assigned_to', 'pipeline_entries', ['assigned_to'])
    op.create_index('ix_pipeline_entries_created_at', 'pipeline_entries', ['created_at'])
    # Board query: one job's entries per column
    op.create_index('ix_pipeline_entries_job_stage', 'pipeline_entries', ['job_id', 'stage'])

    # No FK to pipeline_entries: the trail must survive a hard delete
    op.create_table(
        'stage_transition_records',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('pipeline_entry_id', sa.UUID(), nullable=False),
        sa.Column('from_stage', sa.String(length=25), nullable=True),
        sa.Column('to_stage', sa.String(length=25), nullable=False),
        sa.Column('actor_id', sa.UUID(), nullable=True),
        sa.Column('timestamp_utc', sa.DateTime(timezone=True), nullable=False),
        sa.Column('supplied_fields', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  server_default=sa.text("'{}'::jsonb")),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stage_transition_records_id', 'stage_transition_records', ['id'])
    op.create_index('ix_stage_transition_records_pipeline_entry_id', 'stage_transition_records', ['pipeline_entry_id'])
    op.create_index('ix_stage_transition_records_actor_id', 'stage_transition_records', ['actor_id'])
    op.create_index('ix_stage_transition_records_timestamp_utc', 'stage_transition_records', ['timestamp_utc'])

    op.create_table(
        'placements',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('pipeline_entry_id', sa.UUID(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('job_type', sa.String(length=20), nullable=False, server_default='permanent'),
        sa.Column('salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('fee_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('fee_value', sa.Integer(), nullable=False),
        sa.Column('fee_currency', sa.String(length=3), nullable=False, server_default='GBP'),
        sa.Column('split_with', sa.String(length=255), nullable=True),
        sa.Column('split_percentage', sa.Numeric(5, 2), nullable=False, server_default='100'),
        sa.Column('guarantee_period_days', sa.Integer(), nullable=False),
        sa.Column('guarantee_expiry', sa.Date(), nullable=False),
        sa.Column('rebate_triggered', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('rebate_trigger_date', sa.Date(), nullable=True),
        sa.Column('rebate_reason', sa.Text(), nullable=True),
        sa.Column('rebate_amount', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(length=100), nullable=True),
        sa.Column('invoice_raised', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('invoice_raised_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('invoice_paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('invoice_paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('placed_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['pipeline_entry_id'], ['pipeline_entries.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('pipeline_entry_id'),
    )
    op.create_index('ix_placements_id', 'placements', ['id'])
    op.create_index('ix_placements_pipeline_entry_id', 'placements', ['pipeline_entry_id'])
    op.create_index('ix_placements_status', 'placements', ['status'])

    op.create_table(
        'interview_scorecards',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('pipeline_entry_id', sa.UUID(), nullable=False),
        sa.Column('stage', sa.String(length=25), nullable=False),
        sa.Column('interviewer_name', sa.String(length=255), nullable=True),
        sa.Column('interview_type', sa.String(length=20), nullable=False, server_default='video'),
        sa.Column('interview_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('technical_skills', sa.Integer(), nullable=True),
        sa.Column('communication', sa.Integer(), nullable=True),
        sa.Column('cultural_fit', sa.Integer(), nullable=True),
        sa.Column('motivation', sa.Integer(), nullable=True),
        sa.Column('experience_relevance', sa.Integer(), nullable=True),
        sa.Column('overall_impression', sa.Integer(), nullable=True),
        sa.Column('strengths', sa.Text(), nullable=True),
        sa.Column('concerns', sa.Text(), nullable=True),
        sa.Column('recommendation', sa.String(length=20), nullable=True),
        sa.Column('is_client_feedback', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['pipeline_entry_id'], ['pipeline_entries.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_interview_scorecards_id', 'interview_scorecards', ['id'])
    op.create_index('ix_interview_scorecards_pipeline_entry_id', 'interview_scorecards', ['pipeline_entry_id'])
    op.create_index('ix_interview_scorecards_created_at', 'interview_scorecards', ['created_at'])

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=False),
        sa.Column('resource_id', sa.String(length=64), nullable=False),
        sa.Column('actor_id', sa.UUID(), nullable=True),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activity_logs_id', 'activity_logs', ['id'])
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'])
    op.create_index('ix_activity_logs_resource_id', 'activity_logs', ['resource_id'])
    op.create_index('ix_activity_logs_actor_id', 'activity_logs', ['actor_id'])
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('activity_logs')
    op.drop_table('interview_scorecards')
    op.drop_table('placements')
    op.drop_table('stage_transition_records')
    op.drop_table('pipeline_entries')
    op.drop_table('candidates')
    op.drop_table('jobs')
    op.drop_table('staff_users')
    sa.Enum(name='staffrole').drop(op.get_bind(), checkfirst=True)
