# migrations/versions/001_initial_migration.py

"""Presets visibility and banned users

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table('presets',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('name', sa.String(), nullable=False),
                    sa.Column('author_discord_id', sa.String(), nullable=True),
                    sa.Column('author_name', sa.String(), nullable=True),
                    sa.Column('status', sa.String(), server_default='pending', nullable=False),
                    sa.Column('vote_count', sa.Integer(), server_default='0', nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'),
                              nullable=False),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_presets_author_discord_id'), 'presets', ['author_discord_id'])
    op.create_index(op.f('ix_presets_status'), 'presets', ['status'])

    # One active row per user is enforced in the service, not here
    op.create_table('banned_users',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('discord_id', sa.String(), nullable=True),
                    sa.Column('xivauth_id', sa.String(), nullable=True),
                    sa.Column('username', sa.String(), nullable=False),
                    sa.Column('moderator_discord_id', sa.String(), nullable=False),
                    sa.Column('reason', sa.Text(), nullable=False),
                    sa.Column('banned_at', sa.DateTime(timezone=True), nullable=False),
                    sa.Column('unbanned_at', sa.DateTime(timezone=True), nullable=True),
                    sa.Column('unban_moderator_discord_id', sa.String(), nullable=True),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_banned_users_discord_id'), 'banned_users', ['discord_id'])
    op.create_index(op.f('ix_banned_users_xivauth_id'), 'banned_users', ['xivauth_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_banned_users_xivauth_id'), table_name='banned_users')
    op.drop_index(op.f('ix_banned_users_discord_id'), table_name='banned_users')
    op.drop_table('banned_users')
    op.drop_index(op.f('ix_presets_status'), table_name='presets')
    op.drop_index(op.f('ix_presets_author_discord_id'), table_name='presets')
    op.drop_table('presets')
