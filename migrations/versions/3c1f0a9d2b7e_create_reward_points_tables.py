"""create_reward_points_tables

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-19 09:12:44.281930

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(length=20), nullable=True),
        sa.Column('updated_by', sa.String(length=20), nullable=True),
    ]


def upgrade():
    op.create_table(
        'members',
        *_audit_columns(),
        sa.Column('employee_id', sa.String(length=20), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=150), nullable=False),
        sa.Column('title', sa.String(length=150), nullable=True),
        sa.Column('manager_id', sa.String(length=20), nullable=True),
        sa.Column('director_id', sa.String(length=20), nullable=True),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('ACTIVE', 'INACTIVE', name='memberstatus'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_employee_id', 'members', ['employee_id'], unique=True)
    op.create_index('ix_members_username', 'members', ['username'], unique=True)
    op.create_index('ix_members_email', 'members', ['email'], unique=True)
    op.create_index('ix_members_manager_id', 'members', ['manager_id'])
    op.create_index('ix_members_director_id', 'members', ['director_id'])

    op.create_table(
        'criteria',
        *_audit_columns(),
        sa.Column('track', sa.Enum('MEMBER', 'MANAGER', name='criteriatrack'), nullable=False),
        sa.Column('category', sa.String(length=150), nullable=False),
        sa.Column('accomplishment', sa.String(length=255), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('guidelines', sa.Text(), nullable=True),
        sa.Column('director_approval', sa.Boolean(), nullable=False),
        sa.Column('type', sa.Enum('EXPERTS', 'DELIVERY', 'BOTH', name='criteriatype'), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('track', 'category', 'accomplishment', name='uq_criteria_track_category_accomplishment'),
        sa.CheckConstraint('points > 0', name='ck_criteria_points_positive'),
    )
    op.create_index('ix_criteria_id', 'criteria', ['id'])
    op.create_index('ix_criteria_track', 'criteria', ['track'])
    op.create_index('ix_criteria_category', 'criteria', ['category'])

    op.create_table(
        'reward_entries',
        *_audit_columns(),
        sa.Column('employee_id', sa.String(length=20), nullable=False),
        sa.Column('criteria_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('short_description', sa.Text(), nullable=False),
        sa.Column('date_accomplished', sa.Date(), nullable=False),
        sa.Column('fiscal_year', sa.String(length=10), nullable=False),
        sa.Column('race_season', sa.String(length=20), nullable=False),
        sa.Column('group_name', sa.String(length=100), nullable=True),
        sa.Column('project_name', sa.String(length=150), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['members.employee_id']),
        sa.ForeignKeyConstraint(['criteria_id'], ['criteria.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reward_entries_id', 'reward_entries', ['id'])
    op.create_index('ix_reward_entries_employee_id', 'reward_entries', ['employee_id'])
    op.create_index('ix_reward_entries_fiscal_year', 'reward_entries', ['fiscal_year'])
    op.create_index('ix_reward_entries_group_name', 'reward_entries', ['group_name'])
    op.create_index('ix_reward_entries_project_name', 'reward_entries', ['project_name'])

    op.create_table(
        'approval_entries',
        *_audit_columns(),
        sa.Column('reward_entry_id', sa.Integer(), nullable=False),
        sa.Column('manager_id', sa.String(length=20), nullable=True),
        sa.Column('director_id', sa.String(length=20), nullable=True),
        sa.Column('manager_approval_status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approvalstatus'), nullable=False),
        sa.Column('director_approval_status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approvalstatus'), nullable=False),
        sa.Column('manager_notes', sa.Text(), nullable=True),
        sa.Column('director_notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['reward_entry_id'], ['reward_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manager_id'], ['members.employee_id']),
        sa.ForeignKeyConstraint(['director_id'], ['members.employee_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reward_entry_id'),
    )
    op.create_index('ix_approval_entries_id', 'approval_entries', ['id'])
    op.create_index('ix_approval_entries_manager_id', 'approval_entries', ['manager_id'])
    op.create_index('ix_approval_entries_director_id', 'approval_entries', ['director_id'])

    op.create_table(
        'leaderboards',
        *_audit_columns(),
        sa.Column('employee_id', sa.String(length=20), nullable=False),
        sa.Column('fiscal_year', sa.String(length=10), nullable=False),
        sa.Column('alias_name', sa.String(length=20), nullable=False),
        sa.Column('total_points', sa.Integer(), nullable=False),
        sa.Column('approved_points', sa.Integer(), nullable=False),
        sa.Column('for_approval_points', sa.Integer(), nullable=False),
        sa.Column('rejected_points', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['members.employee_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'fiscal_year', name='uq_leaderboard_employee_fiscal_year'),
        sa.UniqueConstraint('alias_name', name='uq_leaderboard_alias_name'),
    )
    op.create_index('ix_leaderboards_id', 'leaderboards', ['id'])
    op.create_index('ix_leaderboards_employee_id', 'leaderboards', ['employee_id'])
    op.create_index('ix_leaderboards_fiscal_year', 'leaderboards', ['fiscal_year'])

    op.create_table(
        'consent_logs',
        *_audit_columns(),
        sa.Column('employee_id', sa.String(length=20), nullable=False),
        sa.Column('internal_publication_consent', sa.Boolean(), nullable=False),
        sa.Column('personal_data_consent', sa.Boolean(), nullable=False),
        sa.Column('rewards_management_consent', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['members.employee_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id'),
    )
    op.create_index('ix_consent_logs_id', 'consent_logs', ['id'])


def downgrade():
    op.drop_table('consent_logs')
    op.drop_table('leaderboards')
    op.drop_table('approval_entries')
    op.drop_table('reward_entries')
    op.drop_table('criteria')
    op.drop_table('members')
    for enum_name in ('approvalstatus', 'criteriatype', 'criteriatrack', 'memberstatus'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
