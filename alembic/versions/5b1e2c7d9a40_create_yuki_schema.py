"""create users, handle redirects, wallets and contacts

Revision ID: 5b1e2c7d9a40
Revises:
Create Date: 2026-10-18 00:00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5b1e2c7d9a40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wallet_address", sa.String(length=42), nullable=True),
        sa.Column("username", sa.String(length=32), nullable=True),
        sa.Column("username_normalized", sa.String(length=32), nullable=True),
        sa.Column("username_last_changed", sa.DateTime(), nullable=True),
        sa.Column("display_name", sa.String(length=50), nullable=True),
        sa.Column("bio", sa.String(length=160), nullable=True),
        sa.Column("avatar_url", sa.String(length=512), nullable=True),
        sa.Column("banner_url", sa.String(length=512), nullable=True),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_wallet_address", "users", ["wallet_address"], unique=True)
    op.create_index("ix_users_username_normalized", "users", ["username_normalized"], unique=True)

    op.create_table(
        "handle_redirects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("old_handle", sa.String(length=32), nullable=False),
        sa.Column("old_handle_normalized", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_handle_redirects_old_handle_normalized", "handle_redirects", ["old_handle_normalized"], unique=True
    )
    op.create_index("ix_handle_redirects_user_id", "handle_redirects", ["user_id"])

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("chain_id", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("cipher_priv", sa.Text(), nullable=False),
        sa.Column("iv_priv", sa.String(length=64), nullable=False),
        sa.Column("kdf_salt", sa.String(length=128), nullable=False),
        sa.Column("kdf_params", sa.JSON(), nullable=False),
        sa.Column("security_level", sa.String(length=32), nullable=False),
        sa.Column("wrapped_dek_password", sa.Text(), nullable=True),
        sa.Column("iv_dek_password", sa.String(length=64), nullable=True),
        sa.Column("wrapped_dek_passkey", sa.Text(), nullable=True),
        sa.Column("iv_dek_passkey", sa.String(length=64), nullable=True),
        sa.Column("passkey_credential_id", sa.String(length=512), nullable=True),
        sa.Column("passkey_public_key", sa.Text(), nullable=True),
        sa.Column("passkey_counter", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("passkey_transports", sa.JSON(), nullable=True),
        sa.Column("passkey_device_type", sa.String(length=32), nullable=True),
        sa.Column("passkey_backed_up", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("passkey_created_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_wallets_user_id", "wallets", ["user_id"], unique=True)
    op.create_index("ix_wallets_address", "wallets", ["address"])
    op.create_index("ix_wallets_passkey_credential_id", "wallets", ["passkey_credential_id"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("contact_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("nickname", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("owner_user_id", "contact_user_id", name="uq_contacts_owner_contact"),
        sa.CheckConstraint("owner_user_id <> contact_user_id", name="ck_contacts_not_self"),
    )
    op.create_index("ix_contacts_owner_user_id", "contacts", ["owner_user_id"])


def downgrade() -> None:
    op.drop_index("ix_contacts_owner_user_id", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_wallets_passkey_credential_id", table_name="wallets")
    op.drop_index("ix_wallets_address", table_name="wallets")
    op.drop_index("ix_wallets_user_id", table_name="wallets")
    op.drop_table("wallets")
    op.drop_index("ix_handle_redirects_user_id", table_name="handle_redirects")
    op.drop_index("ix_handle_redirects_old_handle_normalized", table_name="handle_redirects")
    op.drop_table("handle_redirects")
    op.drop_index("ix_users_username_normalized", table_name="users")
    op.drop_index("ix_users_wallet_address", table_name="users")
    op.drop_table("users")
