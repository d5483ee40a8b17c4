"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(NOW() AT TIME ZONE 'utc')")),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text("(NOW() AT TIME ZONE 'utc')")),
    ]


def upgrade() -> None:
    """Create tenancy, care, finance and automation tables."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='Australia/Sydney'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index(op.f('ix_organizations_id'), 'organizations', ['id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_organization_id'), 'users', ['organization_id'])

    op.create_table(
        'houses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('suburb', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=20), nullable=True),
        sa.Column('postcode', sa.String(length=10), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_houses_id'), 'houses', ['id'])
    op.create_index(op.f('ix_houses_organization_id'), 'houses', ['organization_id'])

    op.create_table(
        'residents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('ndis_number', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_residents_id'), 'residents', ['id'])
    op.create_index(op.f('ix_residents_organization_id'), 'residents', ['organization_id'])
    op.create_index(op.f('ix_residents_house_id'), 'residents', ['house_id'])

    op.create_table(
        'funding_contracts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('resident_id', sa.Integer(), nullable=False),
        sa.Column('contract_type', sa.String(length=50), nullable=False, server_default='NDIS'),
        sa.Column('contract_status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('original_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('current_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('auto_billing_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('drawdown_frequency', sa.String(length=20), nullable=True, server_default='daily'),
        sa.Column('next_run_date', sa.Date(), nullable=True),
        sa.Column('daily_support_item_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('support_item_code', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_funding_contracts_id'), 'funding_contracts', ['id'])
    op.create_index(op.f('ix_funding_contracts_organization_id'), 'funding_contracts', ['organization_id'])
    op.create_index(op.f('ix_funding_contracts_resident_id'), 'funding_contracts', ['resident_id'])
    op.create_index(op.f('ix_funding_contracts_contract_status'), 'funding_contracts', ['contract_status'])
    op.create_index(op.f('ix_funding_contracts_next_run_date'), 'funding_contracts', ['next_run_date'])

    op.create_table(
        'automations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('schedule', JSONB, nullable=False),
        sa.Column('parameters', JSONB, nullable=False, server_default='{}'),
        sa.Column('last_run_at', sa.DateTime(), nullable=True),
        sa.Column('last_run_status', sa.String(length=20), nullable=True),
        sa.Column('next_run_at', sa.DateTime(), nullable=True),
        sa.Column('running_since', sa.DateTime(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_automations_id'), 'automations', ['id'])
    op.create_index(op.f('ix_automations_organization_id'), 'automations', ['organization_id'])
    op.create_index(op.f('ix_automations_next_run_at'), 'automations', ['next_run_at'])

    op.create_table(
        'automation_runs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('automation_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='running'),
        sa.Column('triggered_by', sa.String(length=20), nullable=False, server_default='manual'),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('metrics', JSONB, nullable=True),
        sa.Column('error', JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(NOW() AT TIME ZONE 'utc')")),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_automation_runs_id'), 'automation_runs', ['id'])
    op.create_index(op.f('ix_automation_runs_automation_id'), 'automation_runs', ['automation_id'])
    op.create_index(op.f('ix_automation_runs_organization_id'), 'automation_runs', ['organization_id'])
    op.create_index(op.f('ix_automation_runs_started_at'), 'automation_runs', ['started_at'])

    op.create_table(
        'automation_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('run_time', sa.String(length=5), nullable=False, server_default='02:00'),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='Australia/Sydney'),
        sa.Column('admin_emails', JSONB, nullable=False, server_default='[]'),
        sa.Column('notify_on_success', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('notify_on_failure', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('max_retries', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('retry_delay_ms', sa.Integer(), nullable=False, server_default='5000'),
        sa.Column('continue_on_error', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id'),
    )
    op.create_index(op.f('ix_automation_settings_id'), 'automation_settings', ['id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('txn_id', sa.String(length=32), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('resident_id', sa.Integer(), nullable=False),
        sa.Column('contract_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('support_item_code', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='manual'),
        sa.Column('automation_id', sa.Integer(), nullable=True),
        sa.Column('automation_run_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['contract_id'], ['funding_contracts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['automation_run_id'], ['automation_runs.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transactions_id'), 'transactions', ['id'])
    op.create_index(op.f('ix_transactions_txn_id'), 'transactions', ['txn_id'], unique=True)
    op.create_index(op.f('ix_transactions_organization_id'), 'transactions', ['organization_id'])
    op.create_index(op.f('ix_transactions_resident_id'), 'transactions', ['resident_id'])
    op.create_index(op.f('ix_transactions_contract_id'), 'transactions', ['contract_id'])
    op.create_index(op.f('ix_transactions_status'), 'transactions', ['status'])
    op.create_index(op.f('ix_transactions_occurred_at'), 'transactions', ['occurred_at'])

    op.create_table(
        'id_sequences',
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('organization_id', 'name'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=50), nullable=True),
        sa.Column('actor', sa.String(length=100), nullable=False, server_default='system'),
        sa.Column('details', JSONB, nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(NOW() AT TIME ZONE 'utc')")),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'])
    op.create_index(op.f('ix_audit_logs_organization_id'), 'audit_logs', ['organization_id'])
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='info'),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(NOW() AT TIME ZONE 'utc')")),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'])
    op.create_index(op.f('ix_notifications_organization_id'), 'notifications', ['organization_id'])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'notifications',
        'audit_logs',
        'id_sequences',
        'transactions',
        'automation_settings',
        'automation_runs',
        'automations',
        'funding_contracts',
        'residents',
        'houses',
        'users',
        'organizations',
    ):
        op.drop_table(table)
