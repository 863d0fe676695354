"""Create users, guests, access and activity_logs tables"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from app.admin.permissions import ACCESS_COLUMNS

revision: str | None = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Apply schema changes."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('mail', sa.String(length=255), nullable=True),
        sa.Column('profile', sa.String(length=100), nullable=True),
        sa.Column('profile_url', sa.String(length=1024), nullable=True),
        sa.Column('enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_on', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('username', name=op.f('uq_users_username')),
        sa.UniqueConstraint('mail', name=op.f('uq_users_mail')),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=False)
    op.create_index('ix_users_profile', 'users', ['profile'], unique=False)

    op.create_table(
        'guests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('mail', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('profile', sa.String(length=100), nullable=False),
        sa.Column('enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_on', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_guests')),
        sa.UniqueConstraint('username', name=op.f('uq_guests_username')),
        sa.UniqueConstraint('mail', name=op.f('uq_guests_mail')),
    )
    op.create_index('ix_guests_username', 'guests', ['username'], unique=False)
    op.create_index('ix_guests_created_on', 'guests', ['created_on'], unique=False)

    # One boolean column per access slot
    access_columns = [
        sa.Column(column, sa.Boolean(), server_default=sa.false(), nullable=False)
        for column in ACCESS_COLUMNS
    ]
    op.create_table(
        'access',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('profile', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        *access_columns,
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_access_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_access')),
        sa.UniqueConstraint('user_id', name=op.f('uq_access_user_id')),
    )
    op.create_index('ix_access_profile', 'access', ['profile'], unique=False)
    # Role templates are the rows without a user; one template per profile
    op.create_index(
        'uq_access_template_profile',
        'access',
        ['profile'],
        unique=True,
        postgresql_where=sa.text('user_id IS NULL'),
    )

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('activity_type', sa.String(length=20), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_activity_logs_user_id_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_activity_logs')),
        sa.CheckConstraint(
            "activity_type IN ('login', 'logout', 'create', 'update', 'delete')",
            name=op.f('ck_activity_logs_activity_type_allowed'),
        ),
    )
    op.create_index('ix_activity_logs_user_id', 'activity_logs', ['user_id'], unique=False)
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'], unique=False)
    op.create_index('ix_activity_logs_activity_type', 'activity_logs', ['activity_type'], unique=False)
    op.create_index('ix_activity_logs_entity_type', 'activity_logs', ['entity_type'], unique=False)


def downgrade() -> None:
    """Revert schema changes."""
    op.drop_index('ix_activity_logs_entity_type', table_name='activity_logs')
    op.drop_index('ix_activity_logs_activity_type', table_name='activity_logs')
    op.drop_index('ix_activity_logs_created_at', table_name='activity_logs')
    op.drop_index('ix_activity_logs_user_id', table_name='activity_logs')
    op.drop_table('activity_logs')

    op.drop_index('uq_access_template_profile', table_name='access')
    op.drop_index('ix_access_profile', table_name='access')
    op.drop_table('access')

    op.drop_index('ix_guests_created_on', table_name='guests')
    op.drop_index('ix_guests_username', table_name='guests')
    op.drop_table('guests')
    op.drop_index('ix_users_profile', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
