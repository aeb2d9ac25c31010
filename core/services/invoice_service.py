"""
Invoice store and draft workflow.

One invoice per (user_id, period id). Saving replaces the stored row except
for the payment-tracking fields, which only update_payment_status touches.
The edit lock is re-checked here on every save, not just in the editor.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, compute_changes
from core.draft import InvoiceDraft, new_draft_invoice
from core.models import Invoice, InvoiceSave, PaymentStatusUpdate, Period
from core.periods import DEFAULT_TIMEZONE, period_for_id
from core.policy import ensure_editable
from core.services.settings_service import SettingsService
from utils.timezone import local_date, now_utc, to_utc

logger = logging.getLogger(__name__)


def _audit_id(user_id: str, invoice_id: str) -> str:
    return f"{user_id}/{invoice_id}"


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        settings: SettingsService,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self.postgres = postgres
        self.audit = audit
        self.settings = settings
        self.tz_name = tz_name

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, user_id: str, invoice_id: str) -> Invoice | None:
        """Invoice for one account and period, or None."""
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE user_id = %s AND id = %s",
            (user_id, invoice_id)
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def list_for_user(self, user_id: str) -> list[Invoice]:
        """All invoices of one account, newest period first."""
        rows = self.postgres.execute(
            """
            SELECT * FROM invoices
            WHERE user_id = %s
            ORDER BY period_start DESC
            """,
            (user_id,)
        )

        return [Invoice.model_validate(row) for row in rows]

    def list_all(self) -> list[Invoice]:
        """Invoices of every account, newest period first."""
        rows = self.postgres.execute(
            "SELECT * FROM invoices ORDER BY period_start DESC, user_id ASC"
        )

        return [Invoice.model_validate(row) for row in rows]

    def history(self, user_id: str, invoice_id: str) -> list[dict[str, Any]]:
        """Audit entries for one invoice, newest first. Kept after deletion."""
        return self.audit.get_entity_history("invoice", _audit_id(user_id, invoice_id), user_id)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _check_saveable(self, data: InvoiceSave, now: datetime | None) -> Period:
        period = period_for_id(data.id, now, self.tz_name)
        ensure_editable(period, now, self.tz_name)

        if (
            local_date(data.period_start, self.tz_name) != period.start
            or local_date(data.period_end, self.tz_name) != period.end
        ):
            raise ValueError(f"Invoice bounds do not match period {period.id}")

        return period

    def upsert(self, user_id: str, data: InvoiceSave, now: datetime | None = None) -> Invoice:
        """
        Create or fully replace an invoice.

        Args:
            user_id: Owning account
            data: Complete invoice body; missing lists were defaulted to []
            now: Clock reading for the lock check (defaults to now)

        Returns:
            Stored invoice

        Raises:
            ValueError: If the account is unknown, the id is not a period id,
                or the bounds don't match the period
            PeriodLockedError: If the period has not started yet
        """
        self.settings.require_account(user_id)
        self._check_saveable(data, now)
        current = self.get(user_id, data.id)

        row = self.postgres.execute_returning(
            """
            INSERT INTO invoices (
                id, user_id, period_start, period_end,
                app_deployments, custom_entries, meetings, base_rate,
                updated_at
            ) VALUES (
                %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s
            )
            ON CONFLICT (user_id, id) DO UPDATE SET
                period_start = EXCLUDED.period_start,
                period_end = EXCLUDED.period_end,
                app_deployments = EXCLUDED.app_deployments,
                custom_entries = EXCLUDED.custom_entries,
                meetings = EXCLUDED.meetings,
                base_rate = EXCLUDED.base_rate,
                updated_at = EXCLUDED.updated_at
            RETURNING *
            """,
            (
                data.id, user_id, to_utc(data.period_start), to_utc(data.period_end),
                Json([d.model_dump(mode="json") for d in data.app_deployments]),
                Json([e.model_dump(mode="json") for e in data.custom_entries]),
                data.meetings, data.base_rate,
                now_utc()
            )
        )[0]

        saved = Invoice.model_validate(row)

        if current is None:
            self.audit.log_change(
                entity_type="invoice",
                entity_id=_audit_id(user_id, saved.id),
                user_id=user_id,
                action=AuditAction.CREATE,
                changes={"created": saved.model_dump(mode="json")}
            )
        else:
            changes = compute_changes(
                current.model_dump(mode="json"),
                saved.model_dump(mode="json")
            )
            if changes:
                self.audit.log_change(
                    entity_type="invoice",
                    entity_id=_audit_id(user_id, saved.id),
                    user_id=user_id,
                    action=AuditAction.UPDATE,
                    changes=changes
                )

        logger.info(f"Invoice {user_id}/{saved.id} saved")
        return saved

    def delete(self, user_id: str, invoice_id: str) -> bool:
        """
        Delete an invoice.

        Returns:
            True if deleted, False if not found
        """
        current = self.get(user_id, invoice_id)
        if current is None:
            return False

        self.postgres.execute(
            "DELETE FROM invoices WHERE user_id = %s AND id = %s",
            (user_id, invoice_id)
        )

        self.audit.log_change(
            entity_type="invoice",
            entity_id=_audit_id(user_id, invoice_id),
            user_id=user_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )

        logger.info(f"Invoice {user_id}/{invoice_id} deleted")
        return True

    def update_payment_status(
        self,
        user_id: str,
        invoice_id: str,
        data: PaymentStatusUpdate,
    ) -> Invoice:
        """
        Set is_paid and received_amount_eur. Nothing else changes.

        Raises:
            ValueError: If invoice not found
        """
        current = self.get(user_id, invoice_id)
        if current is None:
            raise ValueError(f"Invoice {invoice_id} not found")

        row = self.postgres.execute_returning(
            """
            UPDATE invoices
            SET is_paid = %s, received_amount_eur = %s, updated_at = %s
            WHERE user_id = %s AND id = %s
            RETURNING *
            """,
            (data.is_paid, data.received_amount_eur, now_utc(), user_id, invoice_id)
        )[0]

        updated = Invoice.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="invoice",
                entity_id=_audit_id(user_id, invoice_id),
                user_id=user_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        logger.info(f"Payment status of {user_id}/{invoice_id} set to paid={data.is_paid}")
        return updated

    # -------------------------------------------------------------------------
    # Draft workflow
    # -------------------------------------------------------------------------

    def open_draft(self, user_id: str, period: Period, now: datetime | None = None) -> InvoiceDraft:
        """
        Load the stored invoice for a period, or synthesize a fresh draft.

        The user's other invoices are loaded too, for duplicate detection.

        Raises:
            ValueError: If user_id is not a configured account
        """
        self.settings.require_account(user_id)
        rate_config = self.settings.get_rate_config(user_id)
        known = self.list_for_user(user_id)

        existing = next((inv for inv in known if inv.id == period.id), None)
        invoice = existing or new_draft_invoice(user_id, period, rate_config, self.tz_name)

        clock: Callable[[], datetime] = now_utc if now is None else (lambda: now)
        return InvoiceDraft(
            invoice=invoice,
            period=period,
            rate_config=rate_config,
            known_invoices=known,
            is_saved=existing is not None,
            tz_name=self.tz_name,
            clock=clock,
        )

    def save_draft(self, draft: InvoiceDraft, now: datetime | None = None) -> Invoice:
        """Persist a draft and adopt the stored copy into it."""
        saved = self.upsert(draft.invoice.user_id, draft.invoice.to_save(), now)
        draft.mark_saved(saved)
        return saved
