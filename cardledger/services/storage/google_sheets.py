"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote store because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions; every upsert is a single full-row write
- Limited query capabilities (we filter in Python)

Each entity lives in its own worksheet. Rows carry a user_id column
and every read and write is filtered by the signed-in user.
"""

import json
from datetime import date, datetime
from typing import Callable, Generic, Optional, TypeVar

import gspread
import structlog
from google.oauth2.service_account import Credentials

from cardledger.config import GoogleSheetsSettings, get_settings
from cardledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from cardledger.models.finance import (
    BillingCycle,
    Card,
    CardType,
    Installments,
    Profile,
    Subscription,
    Transaction,
    TransactionType,
)
from cardledger.services.storage.interface import (
    AuditStorageInterface,
    CardStorageInterface,
    ConnectionError,
    NotAuthenticatedError,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
    TransactionStorageInterface,
)

logger = structlog.get_logger()

T = TypeVar("T")


# Column mappings, one list per worksheet
CARD_COLUMNS = [
    "id",
    "user_id",
    "name",
    "type",
    "initial_balance",
    "color",
    "last4",
    "payment_day",
    "custom_monthly_bill_amount",
    "min_balance_threshold",
    "total_limit",
    "reminder_date",
]

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "card_id",
    "amount",
    "type",
    "description",
    "date",
    "category",
    "is_monthly_payment",
    "installments_total",
    "installments_current",
]

SUBSCRIPTION_COLUMNS = [
    "id",
    "user_id",
    "name",
    "amount",
    "card_id",
    "billing_day",
    "billing_cycle",
    "category",
    "active",
    "color",
]

# Profiles are keyed by the user id itself
PROFILE_COLUMNS = [
    "id",
    "updated_at",
    "username",
    "full_name",
    "avatar_url",
    "website",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _row_reader(row: list) -> Callable[..., str]:
    """Handle missing columns gracefully."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


def _int_or_none(value: str) -> Optional[int]:
    return int(value) if value else None


def _text(value: Optional[object]) -> str:
    return "" if value is None else str(value)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet creation and the identity of the
    signed-in user. A spreadsheet can be passed in directly, which skips
    authentication.
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        self.user_id = user_id
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    def set_user(self, user_id: Optional[str]) -> None:
        """Switch the signed-in user. None signs out."""
        self.user_id = user_id

    def require_user(self) -> str:
        if not self.user_id:
            raise NotAuthenticatedError("User not authenticated")
        return self.user_id

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            logger.info("creating_worksheet", title=title)
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class _UserScopedSheetStorage(Generic[T]):
    """
    Shared list/upsert/delete over one worksheet.

    Column 0 is the entity id and column 1 the owner's user id.
    """

    entity_name = "entity"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        raise NotImplementedError

    def _to_row(self, entity: T, user_id: str) -> list:
        raise NotImplementedError

    def _from_row(self, row: list) -> T:
        raise NotImplementedError

    def _owned_rows(self, all_rows: list[list], user_id: str):
        """Yield (sheet_row_number, row) for the user's rows, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if len(row) > 1 and row[0] and row[1] == user_id:
                yield idx, row

    async def _list(self) -> list[T]:
        user_id = self._client.user_id
        if not user_id:
            return []
        try:
            all_rows = self._sheet().get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {self.entity_name}s: {e}")

        entities = []
        for idx, row in self._owned_rows(all_rows, user_id):
            try:
                entities.append(self._from_row(row))
            except Exception as e:
                # Skip malformed rows
                logger.warning(
                    "malformed_row_skipped",
                    entity=self.entity_name,
                    row=idx,
                    error=str(e),
                )
        return entities

    async def _upsert(self, entity_id: str, entity: T) -> T:
        user_id = self._client.require_user()
        try:
            sheet = self._sheet()
            row = self._to_row(entity, user_id)
            for idx, existing in self._owned_rows(sheet.get_all_values(), user_id):
                if existing[0] == entity_id:
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[row],
                        value_input_option="RAW",
                    )
                    return entity
            sheet.append_row(row, value_input_option="RAW")
            return entity
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self.entity_name}: {e}")

    async def _delete(self, entity_id: str) -> bool:
        user_id = self._client.require_user()
        try:
            sheet = self._sheet()
            for idx, row in self._owned_rows(sheet.get_all_values(), user_id):
                if row[0] == entity_id:
                    sheet.delete_rows(idx)
                    return True
            return False
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {self.entity_name}: {e}")


class GoogleSheetsCardStorage(_UserScopedSheetStorage[Card], CardStorageInterface):
    """Cards, one per row. The last payment date is never stored."""

    entity_name = "card"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._client.settings.cards_sheet_name, CARD_COLUMNS)

    def _to_row(self, card: Card, user_id: str) -> list:
        return [
            card.id,
            user_id,
            card.name,
            card.type.value,
            str(card.initial_balance),
            card.color,
            card.last4,
            _text(card.payment_day),
            _text(card.custom_monthly_bill_amount),
            _text(card.min_balance_threshold),
            _text(card.total_limit),
            card.reminder_date.isoformat() if card.reminder_date else "",
        ]

    def _from_row(self, row: list) -> Card:
        safe_get = _row_reader(row)
        return Card(
            id=safe_get(0),
            name=safe_get(2),
            type=CardType(safe_get(3)),
            initial_balance=int(safe_get(4, "0")),
            color=safe_get(5) or Card.model_fields["color"].default,
            last4=safe_get(6),
            payment_day=_int_or_none(safe_get(7)),
            custom_monthly_bill_amount=_int_or_none(safe_get(8)),
            min_balance_threshold=_int_or_none(safe_get(9)),
            total_limit=_int_or_none(safe_get(10)),
            reminder_date=date.fromisoformat(safe_get(11)) if safe_get(11) else None,
        )

    async def list_cards(self) -> list[Card]:
        return await self._list()

    async def upsert_card(self, card: Card) -> Card:
        return await self._upsert(card.id, card)

    async def delete_card(self, card_id: str) -> bool:
        return await self._delete(card_id)


class GoogleSheetsTransactionStorage(
    _UserScopedSheetStorage[Transaction],
    TransactionStorageInterface,
):
    """Transactions, one per row. Installments are split into two columns."""

    entity_name = "transaction"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=5000,
        )

    def _to_row(self, tx: Transaction, user_id: str) -> list:
        return [
            tx.id,
            user_id,
            tx.card_id,
            str(tx.amount),
            tx.type.value,
            tx.description,
            tx.date.isoformat(),
            tx.category,
            str(tx.is_monthly_payment),
            str(tx.installments.total) if tx.installments else "",
            str(tx.installments.current) if tx.installments else "",
        ]

    def _from_row(self, row: list) -> Transaction:
        safe_get = _row_reader(row)

        installments = None
        if safe_get(9) and safe_get(10):
            installments = Installments(
                total=int(safe_get(9)),
                current=int(safe_get(10)),
            )

        return Transaction(
            id=safe_get(0),
            card_id=safe_get(2),
            amount=int(safe_get(3, "0")),
            type=TransactionType(safe_get(4)),
            description=safe_get(5),
            date=datetime.fromisoformat(safe_get(6)),
            category=safe_get(7) or "others",
            is_monthly_payment=safe_get(8).lower() == "true",
            installments=installments,
        )

    async def list_transactions(self) -> list[Transaction]:
        return await self._list()

    async def upsert_transaction(self, tx: Transaction) -> Transaction:
        return await self._upsert(tx.id, tx)

    async def delete_transaction(self, tx_id: str) -> bool:
        return await self._delete(tx_id)


class GoogleSheetsSubscriptionStorage(
    _UserScopedSheetStorage[Subscription],
    SubscriptionStorageInterface,
):
    entity_name = "subscription"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
        )

    def _to_row(self, sub: Subscription, user_id: str) -> list:
        return [
            sub.id,
            user_id,
            sub.name,
            str(sub.amount),
            sub.card_id,
            str(sub.billing_day),
            sub.billing_cycle.value,
            sub.category,
            str(sub.active),
            sub.color,
        ]

    def _from_row(self, row: list) -> Subscription:
        safe_get = _row_reader(row)
        return Subscription(
            id=safe_get(0),
            name=safe_get(2),
            amount=int(safe_get(3, "0")),
            card_id=safe_get(4),
            billing_day=int(safe_get(5, "1")),
            billing_cycle=BillingCycle(safe_get(6, "monthly")),
            category=safe_get(7) or "subscriptions",
            active=safe_get(8, "True").lower() == "true",
            color=safe_get(9) or Subscription.model_fields["color"].default,
        )

    async def list_subscriptions(self) -> list[Subscription]:
        return await self._list()

    async def upsert_subscription(self, sub: Subscription) -> Subscription:
        return await self._upsert(sub.id, sub)

    async def delete_subscription(self, sub_id: str) -> bool:
        return await self._delete(sub_id)


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """One profile row per user, keyed by the user id."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.profiles_sheet_name,
            PROFILE_COLUMNS,
        )

    def _profile_to_row(self, profile: Profile) -> list:
        return [
            profile.id,
            profile.updated_at.isoformat() if profile.updated_at else "",
            profile.username or "",
            profile.full_name or "",
            profile.avatar_url or "",
            profile.website or "",
        ]

    def _row_to_profile(self, row: list) -> Profile:
        safe_get = _row_reader(row)
        return Profile(
            id=safe_get(0),
            updated_at=datetime.fromisoformat(safe_get(1)) if safe_get(1) else None,
            username=safe_get(2) or None,
            full_name=safe_get(3) or None,
            avatar_url=safe_get(4) or None,
            website=safe_get(5) or None,
        )

    def _find(self, all_rows: list[list], user_id: str) -> tuple[Optional[int], Optional[list]]:
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == user_id:
                return idx, row
        return None, None

    async def get_profile(self) -> Optional[Profile]:
        """Profile of the signed-in user. A missing row is not an error."""
        user_id = self._client.user_id
        if not user_id:
            return None
        try:
            _, row = self._find(self._sheet().get_all_values(), user_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get profile: {e}")
        return self._row_to_profile(row) if row else None

    async def upsert_profile(self, updates: dict) -> Profile:
        user_id = self._client.require_user()
        try:
            sheet = self._sheet()
            idx, row = self._find(sheet.get_all_values(), user_id)
            current = self._row_to_profile(row).model_dump() if row else {}
            profile = Profile(**{
                **current,
                **updates,
                "id": user_id,
                "updated_at": datetime.utcnow(),
            })
            new_row = self._profile_to_row(profile)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}",
                    values=[new_row],
                    value_input_option="RAW",
                )
            return profile
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update profile: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        safe_get = _row_reader(row)
        return AuditEvent(
            event_id=safe_get(0),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            description=safe_get(6),
            details=json.loads(safe_get(7)) if safe_get(7) else {},
            error_message=safe_get(8) or None,
            is_user_action=safe_get(9).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_storage_failed", error=str(e))
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events."""
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except Exception as e:
                    logger.warning("malformed_audit_row_skipped", error=str(e))

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
