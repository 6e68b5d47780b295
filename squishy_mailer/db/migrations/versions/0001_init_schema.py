"""Initial mailer schema

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-19 09:12:41.118304

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_init_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'projects',
        sa.Column('project_id', sa.Text(), nullable=False),
        sa.Column('project_name', sa.Text(), server_default='', nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('project_id', name='projects_pkey'),
    )
    op.create_table(
        'smtp_transports',
        sa.Column('smtp_transport_id', sa.Text(), nullable=False),
        sa.Column('project_id', sa.Text(), nullable=False),
        sa.Column('transport_name', sa.Text(), nullable=False),
        sa.Column('host', sa.Text(), nullable=False),
        sa.Column('port', sa.Integer(), nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('encrypted_password', sa.Text(), nullable=False),
        sa.Column('email_from', sa.Text(), nullable=False),
        sa.Column('email_from_name', sa.Text(), nullable=False),
        sa.Column('email_replyto', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('modified_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id'], name='transports_project_id_fkey'),
        sa.PrimaryKeyConstraint('smtp_transport_id', 'project_id', name='smtp_transports_pkey'),
    )
    op.create_table(
        'groups',
        sa.Column('group_id', sa.Text(), nullable=False),
        sa.Column('project_id', sa.Text(), nullable=False),
        sa.Column('group_name', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('modified_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id'], name='groups_project_id_fkey'),
        sa.PrimaryKeyConstraint('group_id', 'project_id', name='groups_pkey'),
    )
    op.create_table(
        'templates',
        sa.Column('template_id', sa.Text(), nullable=False),
        sa.Column('group_id', sa.Text(), nullable=False),
        sa.Column('project_id', sa.Text(), nullable=False),
        sa.Column('txt', sa.Text(), nullable=False),
        sa.Column('txt_digest', sa.Text(), nullable=False),
        sa.Column('html', sa.Text(), nullable=False),
        sa.Column('html_digest', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('modified_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ['group_id', 'project_id'],
            ['groups.group_id', 'groups.project_id'],
            name='templates_group_id_project_id_fkey',
        ),
        sa.PrimaryKeyConstraint('template_id', 'group_id', 'project_id', name='templates_pkey'),
        sa.UniqueConstraint('template_id', 'project_id', name='templates_template_id_project_id_uindex'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('templates')
    op.drop_table('groups')
    op.drop_table('smtp_transports')
    op.drop_table('projects')
