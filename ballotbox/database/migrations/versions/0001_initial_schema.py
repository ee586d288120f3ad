"""initial election schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'candidates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('chairman_name', sa.String(length=120), nullable=False),
        sa.Column('chairman_class', sa.String(length=50), nullable=True),
        sa.Column('vice_chairman_name', sa.String(length=120), nullable=True),
        sa.Column('motto', sa.String(length=255), nullable=True),
        sa.Column('vote_count', sa.Integer(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('vote_count >= 0', name='ck_candidates_vote_count_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('candidates', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_candidates_number'), ['number'], unique=True)
        batch_op.create_index(batch_op.f('ix_candidates_chairman_name'), ['chairman_name'], unique=False)
        batch_op.create_index(batch_op.f('ix_candidates_vote_count'), ['vote_count'], unique=False)

    op.create_table(
        'voters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('class', sa.String(length=50), nullable=False),
        sa.Column('has_voted', sa.Boolean(), nullable=False),
        sa.Column('voted_candidate_id', sa.Integer(), nullable=True),
        sa.Column('vote_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['voted_candidate_id'], ['candidates.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('voters', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_voters_username'), ['username'], unique=True)
        batch_op.create_index(batch_op.f('ix_voters_class'), ['class'], unique=False)
        batch_op.create_index(batch_op.f('ix_voters_has_voted'), ['has_voted'], unique=False)
        batch_op.create_index(batch_op.f('ix_voters_vote_time'), ['vote_time'], unique=False)

    op.create_table(
        'votes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('voter_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('voter_name', sa.String(length=120), nullable=False),
        sa.Column('voter_class', sa.String(length=50), nullable=True),
        sa.Column('candidate_name', sa.String(length=120), nullable=False),
        sa.Column('candidate_number', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id']),
        sa.ForeignKeyConstraint(['voter_id'], ['voters.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('votes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_votes_voter_id'), ['voter_id'], unique=True)
        batch_op.create_index(batch_op.f('ix_votes_candidate_id'), ['candidate_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_votes_timestamp'), ['timestamp'], unique=False)
        batch_op.create_index(batch_op.f('ix_votes_voter_name'), ['voter_name'], unique=False)

    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('role', sa.String(length=30), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('admins', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_admins_username'), ['username'], unique=True)
        batch_op.create_index(batch_op.f('ix_admins_role'), ['role'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('action', sa.String(length=40), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('user_name', sa.String(length=120), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_timestamp'), ['timestamp'], unique=False)


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('admins')
    op.drop_table('votes')
    op.drop_table('voters')
    op.drop_table('candidates')
