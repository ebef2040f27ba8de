"""create_landvest_core_schema

Revision ID: 3f1a9c7e2b10
Revises:
Create Date: 2026-01-05 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '3f1a9c7e2b10'
down_revision = None
branch_labels = None
depends_on = None


# (type name, labels) - labels are the enum member names SQLAlchemy persists
ENUM_TYPES = [
    ('user_role', ('USER', 'ADMIN', 'OPS')),
    ('actor_role', ('USER', 'ADMIN', 'OPS')),
    ('user_status', ('ACTIVE', 'INACTIVE', 'SUSPENDED')),
    ('wallet_status', ('ACTIVE', 'FROZEN', 'SUSPENDED')),
    ('payment_method_type', ('DEPOSIT', 'WITHDRAWAL', 'BOTH')),
    ('fee_type', ('FIXED', 'PERCENTAGE')),
    ('property_status', ('PLANNING', 'ACTIVE', 'SOLD_OUT', 'INACTIVE')),
    ('plot_status', ('AVAILABLE', 'HELD', 'SOLD')),
    ('sale_status', ('PENDING', 'COMPLETED', 'CANCELLED')),
    ('investment_status', ('PENDING', 'ACTIVE', 'COMPLETED', 'CANCELLED')),
    ('profit_status', ('PENDING', 'DISTRIBUTED', 'CANCELLED')),
    ('transaction_type', ('DEPOSIT', 'WITHDRAWAL', 'INVESTMENT', 'PROFIT', 'REFUND')),
    ('transaction_status', ('PENDING', 'COMPLETED', 'FAILED', 'REJECTED', 'CANCELLED')),
    ('payment_mode', ('CASH', 'BANK_TRANSFER', 'UPI', 'CHEQUE', 'ONLINE')),
    ('team_status', ('ACTIVE', 'INACTIVE')),
    ('team_member_status', ('ACTIVE', 'INACTIVE')),
    ('team_member_role', ('MEMBER', 'LEADER')),
]
ENUM_LABELS = dict(ENUM_TYPES)


def _enum(name: str):
    return postgresql.ENUM(*ENUM_LABELS[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    for name, labels in ENUM_TYPES:
        values = ", ".join(f"'{label}'" for label in labels)
        op.execute(f"""
            DO $$
            BEGIN
                IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN
                    CREATE TYPE {name} AS ENUM ({values});
                END IF;
            END $$;
        """)

    op.create_table(
        'users',
        *_timestamps(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', _enum('user_role'), nullable=False, server_default='USER'),
        sa.Column('status', _enum('user_status'), nullable=False, server_default='ACTIVE'),
        sa.Column('kyc_verified', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)
    op.create_index(op.f('ix_users_status'), 'users', ['status'], unique=False)

    op.create_table(
        'wallets',
        *_timestamps(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('total_deposits', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('total_withdrawals', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('total_investments', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('total_profits', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('frozen_amount', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('pending_amount', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('status', _enum('wallet_status'), nullable=False, server_default='ACTIVE'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('last_transaction_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_wallets_user_id'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('frozen_amount >= 0', name='check_wallets_frozen_non_negative'),
        sa.CheckConstraint('pending_amount >= 0', name='check_wallets_pending_non_negative'),
    )
    op.create_index(op.f('ix_wallets_id'), 'wallets', ['id'], unique=False)
    op.create_index(op.f('ix_wallets_user_id'), 'wallets', ['user_id'], unique=True)
    op.create_index(op.f('ix_wallets_status'), 'wallets', ['status'], unique=False)

    op.create_table(
        'payment_methods',
        *_timestamps(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('type', _enum('payment_method_type'), nullable=False, server_default='BOTH'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('min_amount', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('max_amount', sa.Numeric(20, 2), nullable=True),
        sa.Column('processing_fee', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('processing_fee_type', _enum('fee_type'), nullable=False, server_default='FIXED'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payment_methods_id'), 'payment_methods', ['id'], unique=False)
    op.create_index(op.f('ix_payment_methods_code'), 'payment_methods', ['code'], unique=True)
    op.create_index(op.f('ix_payment_methods_is_active'), 'payment_methods', ['is_active'], unique=False)

    op.create_table(
        'properties',
        *_timestamps(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False, server_default='residential'),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_area', sa.Numeric(20, 2), nullable=True),
        sa.Column('purchase_cost', sa.Numeric(20, 2), nullable=True),
        sa.Column('status', _enum('property_status'), nullable=False, server_default='ACTIVE'),
        sa.Column('total_plots', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('available_plots', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sold_plots', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_properties_id'), 'properties', ['id'], unique=False)
    op.create_index(op.f('ix_properties_name'), 'properties', ['name'], unique=False)
    op.create_index(op.f('ix_properties_status'), 'properties', ['status'], unique=False)

    op.create_table(
        'plots',
        *_timestamps(),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('plot_number', sa.String(length=50), nullable=False),
        sa.Column('area', sa.Numeric(20, 2), nullable=True),
        sa.Column('price', sa.Numeric(20, 2), nullable=False),
        sa.Column('status', _enum('plot_status'), nullable=False, server_default='AVAILABLE'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_plots_property_id'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'plot_number', name='uq_plots_property_plot_number'),
    )
    op.create_index(op.f('ix_plots_id'), 'plots', ['id'], unique=False)
    op.create_index(op.f('ix_plots_property_id'), 'plots', ['property_id'], unique=False)
    op.create_index(op.f('ix_plots_status'), 'plots', ['status'], unique=False)

    op.create_table(
        'investments',
        *_timestamps(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('plot_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(20, 2), nullable=False),
        sa.Column('status', _enum('investment_status'), nullable=False, server_default='PENDING'),
        sa.Column('expected_return', sa.Numeric(20, 2), nullable=True),
        sa.Column('actual_return', sa.Numeric(20, 2), nullable=True),
        sa.Column('return_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('profit_distributed', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('investment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('maturity_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reinvestment_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('source_investment_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_investments_user_id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_investments_property_id'),
        sa.ForeignKeyConstraint(['plot_id'], ['plots.id'], name='fk_investments_plot_id'),
        sa.ForeignKeyConstraint(['source_investment_id'], ['investments.id'], name='fk_investments_source_investment_id'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='check_investments_amount_positive'),
    )
    op.create_index(op.f('ix_investments_id'), 'investments', ['id'], unique=False)
    op.create_index(op.f('ix_investments_user_id'), 'investments', ['user_id'], unique=False)
    op.create_index(op.f('ix_investments_property_id'), 'investments', ['property_id'], unique=False)
    op.create_index(op.f('ix_investments_source_investment_id'), 'investments', ['source_investment_id'], unique=False)
    op.create_index(op.f('ix_investments_plot_id'), 'investments', ['plot_id'], unique=False)
    op.create_index(op.f('ix_investments_status'), 'investments', ['status'], unique=False)

    op.create_table(
        'sales',
        *_timestamps(),
        sa.Column('plot_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('investment_id', sa.Integer(), nullable=True),
        sa.Column('buyer_name', sa.String(length=255), nullable=False),
        sa.Column('buyer_phone', sa.String(length=50), nullable=True),
        sa.Column('buyer_email', sa.String(length=255), nullable=True),
        sa.Column('sale_price', sa.Numeric(20, 2), nullable=False),
        sa.Column('original_price', sa.Numeric(20, 2), nullable=False),
        sa.Column('profit_amount', sa.Numeric(20, 2), nullable=False),
        sa.Column('status', _enum('sale_status'), nullable=False, server_default='COMPLETED'),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['plot_id'], ['plots.id'], name='fk_sales_plot_id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_sales_property_id'),
        sa.ForeignKeyConstraint(['investment_id'], ['investments.id'], name='fk_sales_investment_id'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sales_id'), 'sales', ['id'], unique=False)
    op.create_index(op.f('ix_sales_plot_id'), 'sales', ['plot_id'], unique=True)
    op.create_index(op.f('ix_sales_property_id'), 'sales', ['property_id'], unique=False)
    op.create_index(op.f('ix_sales_investment_id'), 'sales', ['investment_id'], unique=False)
    op.create_index(op.f('ix_sales_status'), 'sales', ['status'], unique=False)

    op.create_table(
        'profits',
        *_timestamps(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('investment_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('total_profit', sa.Numeric(20, 2), nullable=False),
        sa.Column('profit_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('company_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('investor_share', sa.Numeric(20, 2), nullable=False),
        sa.Column('company_share', sa.Numeric(20, 2), nullable=False),
        sa.Column('status', _enum('profit_status'), nullable=False, server_default='PENDING'),
        sa.Column('calculation_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('distribution_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('distributed_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_profits_user_id'),
        sa.ForeignKeyConstraint(['investment_id'], ['investments.id'], name='fk_profits_investment_id'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_profits_sale_id'),
        sa.ForeignKeyConstraint(['distributed_by'], ['users.id'], name='fk_profits_distributed_by'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('profit_percentage >= 0 AND profit_percentage <= 100', name='check_profits_percentage_range'),
    )
    op.create_index(op.f('ix_profits_id'), 'profits', ['id'], unique=False)
    op.create_index(op.f('ix_profits_user_id'), 'profits', ['user_id'], unique=False)
    op.create_index(op.f('ix_profits_investment_id'), 'profits', ['investment_id'], unique=False)
    op.create_index(op.f('ix_profits_sale_id'), 'profits', ['sale_id'], unique=False)
    op.create_index(op.f('ix_profits_status'), 'profits', ['status'], unique=False)

    op.create_table(
        'transactions',
        *_timestamps(),
        sa.Column('reference', sa.String(length=64), nullable=False),
        sa.Column('wallet_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', _enum('transaction_type'), nullable=False),
        sa.Column('status', _enum('transaction_status'), nullable=False, server_default='PENDING'),
        sa.Column('amount', sa.Numeric(20, 2), nullable=False),
        sa.Column('processing_fee', sa.Numeric(20, 2), nullable=False, server_default='0.00'),
        sa.Column('net_amount', sa.Numeric(20, 2), nullable=False),
        sa.Column('balance_before', sa.Numeric(20, 2), nullable=False),
        sa.Column('balance_after', sa.Numeric(20, 2), nullable=False),
        sa.Column('payment_method_id', sa.Integer(), nullable=True),
        sa.Column('payment_mode', _enum('payment_mode'), nullable=True),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('bank_account', sa.String(length=255), nullable=True),
        sa.Column('upi_id', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('investment_id', sa.Integer(), nullable=True),
        sa.Column('profit_id', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by', sa.Integer(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], name='fk_transactions_wallet_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_transactions_user_id'),
        sa.ForeignKeyConstraint(['payment_method_id'], ['payment_methods.id'], name='fk_transactions_payment_method_id'),
        sa.ForeignKeyConstraint(['investment_id'], ['investments.id'], name='fk_transactions_investment_id'),
        sa.ForeignKeyConstraint(['profit_id'], ['profits.id'], name='fk_transactions_profit_id'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], name='fk_transactions_approved_by'),
        sa.ForeignKeyConstraint(['rejected_by'], ['users.id'], name='fk_transactions_rejected_by'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='check_transactions_amount_positive'),
        sa.CheckConstraint('processing_fee >= 0', name='check_transactions_fee_non_negative'),
    )
    op.create_index(op.f('ix_transactions_id'), 'transactions', ['id'], unique=False)
    op.create_index(op.f('ix_transactions_reference'), 'transactions', ['reference'], unique=True)
    op.create_index(op.f('ix_transactions_wallet_id'), 'transactions', ['wallet_id'], unique=False)
    op.create_index(op.f('ix_transactions_user_id'), 'transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_transactions_type'), 'transactions', ['type'], unique=False)
    op.create_index(op.f('ix_transactions_status'), 'transactions', ['status'], unique=False)
    op.create_index(op.f('ix_transactions_payment_method_id'), 'transactions', ['payment_method_id'], unique=False)
    op.create_index(op.f('ix_transactions_investment_id'), 'transactions', ['investment_id'], unique=False)
    op.create_index(op.f('ix_transactions_profit_id'), 'transactions', ['profit_id'], unique=False)
    op.create_index('ix_transactions_wallet_status', 'transactions', ['wallet_id', 'status'], unique=False)
    op.create_index('ix_transactions_user_created', 'transactions', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'teams',
        *_timestamps(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('leader_id', sa.Integer(), nullable=True),
        sa.Column('status', _enum('team_status'), nullable=False, server_default='ACTIVE'),
        sa.ForeignKeyConstraint(['leader_id'], ['users.id'], name='fk_teams_leader_id'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_teams_name'),
    )
    op.create_index(op.f('ix_teams_id'), 'teams', ['id'], unique=False)
    op.create_index(op.f('ix_teams_leader_id'), 'teams', ['leader_id'], unique=False)

    op.create_table(
        'team_members',
        *_timestamps(),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', _enum('team_member_role'), nullable=False, server_default='MEMBER'),
        sa.Column('status', _enum('team_member_status'), nullable=False, server_default='ACTIVE'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], name='fk_team_members_team_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_team_members_user_id'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
    )
    op.create_index(op.f('ix_team_members_id'), 'team_members', ['id'], unique=False)
    op.create_index(op.f('ix_team_members_team_id'), 'team_members', ['team_id'], unique=False)
    op.create_index(op.f('ix_team_members_user_id'), 'team_members', ['user_id'], unique=False)

    op.create_table(
        'audit_logs',
        *_timestamps(),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('actor_role', _enum('actor_role'), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('before', postgresql.JSONB(), nullable=True),
        sa.Column('after', postgresql.JSONB(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], name='fk_audit_logs_actor_user_id', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)
    op.create_index(op.f('ix_audit_logs_actor_user_id'), 'audit_logs', ['actor_user_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_actor_role'), 'audit_logs', ['actor_role'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'], unique=False)


def downgrade() -> None:
    for table in (
        'audit_logs',
        'team_members',
        'teams',
        'transactions',
        'profits',
        'sales',
        'investments',
        'plots',
        'properties',
        'payment_methods',
        'wallets',
        'users',
    ):
        op.drop_table(table)

    for name, _ in reversed(ENUM_TYPES):
        op.execute(f"DROP TYPE IF EXISTS {name}")
