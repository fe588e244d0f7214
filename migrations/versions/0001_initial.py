"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('registered_teachers', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'], unique=True)

    op.create_table('schedules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.String(64), nullable=False),
        sa.Column('sheet_name', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('title_key', sa.String(255), nullable=False),
        sa.Column('num_of_teachers', sa.Integer(), nullable=False),
        sa.Column('selected_days', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.String(16), nullable=False),
        sa.Column('end_time', sa.String(16), nullable=False),
        sa.Column('interval', sa.String(16), nullable=False),
        sa.Column('teacher_names', sa.JSON(), nullable=False),
        sa.Column('teacher_user_ids', sa.JSON(), nullable=False),
        sa.Column('day_dates', sa.JSON(), nullable=False),
        sa.Column('cell_texts', sa.JSON(), nullable=False),
        sa.Column('merged_blocks', sa.JSON(), nullable=False),
        sa.Column('view_mode', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('owner_id', 'sheet_name', name='uq_schedule_owner_sheet'),
        sa.UniqueConstraint('owner_id', 'title_key', name='uq_schedule_owner_title'),
    )
    op.create_index('ix_schedules_owner_id', 'schedules', ['owner_id'])
    op.create_index('ix_schedule_owner_created', 'schedules', ['owner_id', 'created_at'])

    op.create_table('sheet_teachers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sheet_id', sa.Integer(), sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.UniqueConstraint('sheet_id', 'position', name='uq_sheet_teacher_position'),
    )
    op.create_index('ix_sheet_teachers_user_id', 'sheet_teachers', ['user_id'])

    op.create_table('posts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author_id', sa.String(64), nullable=False),
        sa.Column('author_email', sa.String(255), nullable=False),
        sa.Column('author_role', sa.String(16), nullable=False),
        sa.Column('is_notice', sa.Boolean(), nullable=False),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_post_author_created', 'posts', ['author_id', 'created_at'])
    op.create_index('ix_post_notice_created', 'posts', ['is_notice', 'created_at'])

    op.create_table('comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author_id', sa.String(64), nullable=False),
        sa.Column('author_role', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_comment_post_created', 'comments', ['post_id', 'created_at'])
    op.create_index('ix_comment_author_created', 'comments', ['author_id', 'created_at'])


def downgrade():
    op.drop_table('comments')
    op.drop_table('posts')
    op.drop_table('sheet_teachers')
    op.drop_table('schedules')
    op.drop_table('accounts')
