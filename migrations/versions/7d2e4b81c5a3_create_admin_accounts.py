"""create_admin_accounts

Revision ID: 7d2e4b81c5a3
Revises: 3c1f0a9d2b7e
Create Date: 2026-10-19 11:40:05.512307

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7d2e4b81c5a3'
down_revision: Union[str, None] = '3c1f0a9d2b7e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'admin_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(length=20), nullable=True),
        sa.Column('updated_by', sa.String(length=20), nullable=True),
        sa.Column('member_employee_id', sa.String(length=20), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=150), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('status', sa.Enum('ACTIVE', 'INACTIVE', name='adminstatus'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_accounts_id', 'admin_accounts', ['id'])
    op.create_index('ix_admin_accounts_member_employee_id', 'admin_accounts', ['member_employee_id'], unique=True)
    op.create_index('ix_admin_accounts_username', 'admin_accounts', ['username'], unique=True)
    op.create_index('ix_admin_accounts_email', 'admin_accounts', ['email'], unique=True)


def downgrade():
    op.drop_table('admin_accounts')
    sa.Enum(name='adminstatus').drop(op.get_bind(), checkfirst=True)
