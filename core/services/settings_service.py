"""
Settings provider: per-account rate configuration.

Accounts come from BillingConfig. Each account has at most one settings row;
saving replaces the whole row. A zero meeting unit never reaches the table
because UserSettingsUpdate rejects it.
"""

import logging

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import AccountDefaults, BillingConfig
from core.models import UserSettings, UserSettingsUpdate

logger = logging.getLogger(__name__)

_AUDIT_EXCLUDE = {"updated_at", "pin"}


class SettingsService:
    """Service for account settings."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, config: BillingConfig):
        self.postgres = postgres
        self.audit = audit
        self.config = config

    def list_accounts(self) -> list[AccountDefaults]:
        return list(self.config.accounts)

    def require_account(self, user_id: str) -> AccountDefaults:
        """
        Raises:
            ValueError: If user_id is not a configured account
        """
        account = self.config.get_account(user_id)
        if account is None:
            raise ValueError(f"Account {user_id} not found")
        return account

    def get_rate_config(self, user_id: str) -> UserSettings | None:
        """Settings row for an account, or None if not stored yet."""
        row = self.postgres.execute_single(
            "SELECT * FROM settings WHERE user_id = %s",
            (user_id,)
        )

        if row is None:
            return None

        return UserSettings.model_validate(row)

    def get_all(self) -> dict[str, UserSettings]:
        """Settings of every configured account that has a row, keyed by user_id."""
        rows = self.postgres.execute(
            "SELECT * FROM settings WHERE user_id = ANY(%s)",
            (self.config.account_ids,)
        )

        return {row["user_id"]: UserSettings.model_validate(row) for row in rows}

    def save_rate_config(self, user_id: str, data: UserSettingsUpdate) -> UserSettings:
        """
        Upsert the full settings row.

        Raises:
            ValueError: If user_id is not a configured account
        """
        self.require_account(user_id)
        current = self.get_rate_config(user_id)

        row = self.postgres.execute_returning(
            """
            INSERT INTO settings (
                user_id, pin, base_rate, deployment_rate, deployment_label,
                meeting_rate_unit, meeting_rate_value
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id) DO UPDATE SET
                pin = EXCLUDED.pin,
                base_rate = EXCLUDED.base_rate,
                deployment_rate = EXCLUDED.deployment_rate,
                deployment_label = EXCLUDED.deployment_label,
                meeting_rate_unit = EXCLUDED.meeting_rate_unit,
                meeting_rate_value = EXCLUDED.meeting_rate_value
            RETURNING *
            """,
            (
                user_id, data.pin, data.base_rate, data.deployment_rate, data.deployment_label,
                data.meeting_rate_unit, data.meeting_rate_value
            )
        )[0]

        saved = UserSettings.model_validate(row)

        if current is None:
            self.audit.log_change(
                entity_type="settings",
                entity_id=user_id,
                user_id=user_id,
                action=AuditAction.CREATE,
                changes={"created": saved.model_dump(mode="json", exclude=_AUDIT_EXCLUDE)}
            )
        else:
            changes = compute_changes(
                current.model_dump(mode="json"),
                saved.model_dump(mode="json"),
                exclude_fields=_AUDIT_EXCLUDE
            )
            if changes:
                self.audit.log_change(
                    entity_type="settings",
                    entity_id=user_id,
                    user_id=user_id,
                    action=AuditAction.UPDATE,
                    changes=changes
                )

        logger.info(f"Settings saved for {user_id}")
        return saved

    def initialize_defaults(self) -> list[str]:
        """
        Insert seed settings for configured accounts that have no row.

        Returns:
            user_ids that were initialized
        """
        initialized = []
        for account in self.config.accounts:
            if self.get_rate_config(account.user_id) is not None:
                continue

            logger.info(f"Initializing default settings for {account.user_id}")
            self.postgres.execute(
                """
                INSERT INTO settings (
                    user_id, pin, base_rate, deployment_rate, deployment_label,
                    meeting_rate_unit, meeting_rate_value
                ) VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id) DO NOTHING
                """,
                (
                    account.user_id, account.pin, account.base_rate, account.deployment_rate,
                    account.deployment_label, account.meeting_rate_unit, account.meeting_rate_value
                )
            )
            initialized.append(account.user_id)

        return initialized
