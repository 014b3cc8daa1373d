"""
Main Orchestrator for Card Ledger

This module ties the components together and defines the session flows:
1. Load (store -> state)
2. Save / delete of cards, transactions and subscriptions
3. Reminders, bill payment prefill, discard-changes prompts
4. AI advice and receipt scanning
5. Preferences and profile

DESIGN DECISION: The orchestrator enforces the boundaries:
- State changes only after the store confirmed the write
- A failed call leaves state untouched, is audited and shown to the user
- Destructive actions need an explicit confirmation
- No flow raises; every path returns control to the caller

There are no retries. The user repeats the action if they want to.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from cardledger.agents import AdvisorAgent, ReceiptAgent
from cardledger.agents.ai_agents import FALLBACK_TEXTS, fallback_text
from cardledger.audit import AuditLogger
from cardledger.config import get_settings
from cardledger.derivations.billing import payment_prefill
from cardledger.derivations.schedule import card_payment_status, upcoming_payments
from cardledger.forms.dirty import is_card_form_dirty, is_transaction_form_dirty
from cardledger.models.audit import AuditEventBuilder
from cardledger.models.finance import (
    Card,
    PaymentStatus,
    Profile,
    Subscription,
    Transaction,
    TransactionType,
    UpcomingPayment,
)
from cardledger.models.forms import (
    CardForm,
    SubscriptionForm,
    TransactionForm,
    ValidationResult,
)
from cardledger.models.preferences import (
    EnabledUpdate,
    FrequencyUpdate,
    UserPreferences,
    apply_notification_update,
)
from cardledger.services.images import ImageProcessingError, prepare_image
from cardledger.services.preferences import LocalPreferencesStore
from cardledger.services.storage import (
    CardStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsCardStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSubscriptionStorage,
    GoogleSheetsTransactionStorage,
    InMemoryCardStorage,
    InMemoryProfileStorage,
    InMemoryStore,
    InMemorySubscriptionStorage,
    InMemoryTransactionStorage,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
    TransactionStorageInterface,
)
from cardledger.state import AppState
from cardledger.validation import FormValidator

logger = structlog.get_logger()


# =============================================================================
# USER-FACING SEAMS
# =============================================================================

class UserNotifier(ABC):
    """Shows a short message to the user (toast, alert, console line)."""

    @abstractmethod
    def notify(self, message: str, level: str = "info") -> None:
        pass


class ConfirmationPrompt(ABC):
    """Asks the user a yes/no question before a destructive action."""

    @abstractmethod
    async def confirm(self, title: str, message: str) -> bool:
        pass


class LogNotifier(UserNotifier):
    """Notifier that only writes to the structured log."""

    def notify(self, message: str, level: str = "info") -> None:
        logger.info("user_notice", level=level, message=message)


class StaticConfirmation(ConfirmationPrompt):
    """Always gives the same answer. Useful for scripts and tests."""

    def __init__(self, answer: bool = True):
        self.answer = answer

    async def confirm(self, title: str, message: str) -> bool:
        return self.answer


class MutationResult(BaseModel):
    """Outcome of a session flow."""

    success: bool
    entity_id: Optional[str] = None
    message: Optional[str] = None
    cancelled: bool = False
    validation: Optional[ValidationResult] = None


# =============================================================================
# SESSION
# =============================================================================

class FinanceSession:
    """
    Orchestrates every user action of one signed-in session.

    All collaborators can be injected; the AI agents are only built on
    first use so a session without Gemini configuration still works.
    """

    def __init__(
        self,
        card_storage: CardStorageInterface,
        transaction_storage: TransactionStorageInterface,
        subscription_storage: SubscriptionStorageInterface,
        profile_storage: Optional[ProfileStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        preferences_store: Optional[LocalPreferencesStore] = None,
        advisor: Optional[AdvisorAgent] = None,
        receipt_agent: Optional[ReceiptAgent] = None,
        validator: Optional[FormValidator] = None,
        notifier: Optional[UserNotifier] = None,
        confirmer: Optional[ConfirmationPrompt] = None,
        clock: Optional[Callable[[], date]] = None,
        language: Optional[str] = None,
    ):
        self._cards = card_storage
        self._transactions = transaction_storage
        self._subscriptions = subscription_storage
        self._profiles = profile_storage
        self._audit = audit_logger or AuditLogger()
        self._preferences_store = preferences_store or LocalPreferencesStore()
        self._advisor = advisor
        self._receipt_agent = receipt_agent
        self._validator = validator or FormValidator()
        self._notifier = notifier or LogNotifier()
        self._confirmer = confirmer or StaticConfirmation(True)
        self._clock = clock or date.today
        app = get_settings().app
        self._language = language or app.language
        self._urgency_threshold = app.urgency_threshold_days

        self.state = AppState(self._preferences_store.load())

    # ----- helpers -----

    def _today(self) -> date:
        return self._clock()

    @property
    def advisor(self) -> Optional[AdvisorAgent]:
        """The advice agent, or None while Gemini is not configured."""
        if self._advisor is None:
            try:
                self._advisor = AdvisorAgent(
                    language=self._language,
                    currency=self.state.preferences.currency.value,
                )
            except ValidationError as e:
                logger.warning("ai_not_configured", agent="advisor", error=str(e))
        return self._advisor

    @property
    def receipt_agent(self) -> Optional[ReceiptAgent]:
        """The receipt agent, or None while Gemini is not configured."""
        if self._receipt_agent is None:
            try:
                self._receipt_agent = ReceiptAgent(language=self._language)
            except ValidationError as e:
                logger.warning("ai_not_configured", agent="receipt", error=str(e))
        return self._receipt_agent

    async def _ai_unavailable(self, operation: str) -> None:
        await self._audit.log(AuditEventBuilder.ai_fallback_used(operation))
        self._notifier.notify("The AI assistant is not configured.", level="warning")

    async def _storage_failed(
        self,
        operation: str,
        entity_type: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> MutationResult:
        await self._audit.log_storage_failed(operation, entity_type, error, entity_id)
        message = f"Error trying to {operation} {entity_type}: {error}"
        self._notifier.notify(message, level="error")
        return MutationResult(success=False, entity_id=entity_id, message=message)

    async def _rejected(self, result: ValidationResult) -> MutationResult:
        await self._audit.log_validation_failed(
            result.entity_type,
            [issue.model_dump() for issue in result.issues],
        )
        summary = self._validator.get_user_friendly_summary(result)
        self._notifier.notify(summary, level="warning")
        return MutationResult(success=False, message=summary, validation=result)

    async def _confirmed(
        self,
        action: str,
        title: str,
        message: str,
        entity_type: str,
        entity_id: str,
    ) -> bool:
        if await self._confirmer.confirm(title, message):
            return True
        await self._audit.log_user_cancelled(action, entity_type, entity_id)
        return False

    # ----- load -----

    async def load(self) -> MutationResult:
        """Fetch every collection of the signed-in user and replace the state."""
        if self._preferences_store.migrated:
            await self._audit.log(
                AuditEventBuilder.preferences_migrated(str(self._preferences_store.path))
            )
            self._preferences_store.migrated = False

        try:
            cards, transactions, subscriptions = await asyncio.gather(
                self._cards.list_cards(),
                self._transactions.list_transactions(),
                self._subscriptions.list_subscriptions(),
            )
        except StorageError as e:
            return await self._storage_failed("load", "data", e)

        self.state.replace_all(cards, transactions, subscriptions)
        await self._audit.log(AuditEventBuilder.data_loaded(
            cards=len(cards),
            transactions=len(transactions),
            subscriptions=len(subscriptions),
        ))
        return MutationResult(success=True)

    # ----- cards -----

    async def save_card(
        self,
        form: CardForm,
        editing: Optional[Card] = None,
    ) -> MutationResult:
        card, result = self._validator.build_card(form, editing)
        if card is None:
            return await self._rejected(result)

        try:
            saved = await self._cards.upsert_card(card)
        except StorageError as e:
            return await self._storage_failed("save", "card", e, card.id)

        self.state.put_card(saved)
        await self._audit.log_saved("card", saved.id, name=saved.name)
        message = "Card updated" if editing else "Card created"
        self._notifier.notify(message, level="success")
        return MutationResult(success=True, entity_id=saved.id, message=message)

    async def delete_card(self, card_id: str) -> MutationResult:
        """Delete a card after confirmation. Its transactions are kept."""
        if not card_id:
            return MutationResult(success=False, message="No card selected")

        if not await self._confirmed(
            "delete card",
            "Delete card",
            "Are you sure you want to delete this card?",
            "card",
            card_id,
        ):
            return MutationResult(success=False, entity_id=card_id, cancelled=True)

        try:
            await self._cards.delete_card(card_id)
        except StorageError as e:
            return await self._storage_failed("delete", "card", e, card_id)

        self.state.remove_card(card_id)
        await self._audit.log_deleted("card", card_id)
        return MutationResult(success=True, entity_id=card_id)

    async def set_reminder(self, card_id: str, reminder_date: date) -> MutationResult:
        return await self._store_reminder(card_id, reminder_date, "Reminder set")

    async def clear_reminder(self, card_id: str) -> MutationResult:
        return await self._store_reminder(card_id, None, "Reminder removed")

    async def _store_reminder(
        self,
        card_id: str,
        reminder_date: Optional[date],
        success_message: str,
    ) -> MutationResult:
        card = self.state.find_card(card_id)
        if card is None:
            message = "Card not found"
            self._notifier.notify(message, level="error")
            return MutationResult(success=False, entity_id=card_id, message=message)

        updated = card.model_copy(update={"reminder_date": reminder_date})
        try:
            saved = await self._cards.upsert_card(updated)
        except StorageError as e:
            return await self._storage_failed("save", "card", e, card_id)

        self.state.put_card(saved)
        await self._audit.log_saved(
            "card",
            card_id,
            reminder_date=reminder_date.isoformat() if reminder_date else None,
        )
        self._notifier.notify(success_message, level="success")
        return MutationResult(success=True, entity_id=card_id, message=success_message)

    # ----- transactions -----

    def new_transaction_form(self) -> TransactionForm:
        """Blank transaction form with the default card preselected."""
        return TransactionForm.blank(self.state.default_card_id(), self._today())

    def pay_card_prefill(self, card_id: str) -> Optional[TransactionForm]:
        """Transaction form for paying the card's current bill, None if unknown."""
        card = self.state.find_card(card_id)
        if card is None:
            return None
        return payment_prefill(card, self.state.transactions, self._today(), self._language)

    async def save_transaction(
        self,
        form: TransactionForm,
        editing: Optional[Transaction] = None,
    ) -> MutationResult:
        tx, result = self._validator.build_transaction(form, self.state.cards, editing)
        if tx is None:
            return await self._rejected(result)

        try:
            saved = await self._transactions.upsert_transaction(tx)
        except StorageError as e:
            return await self._storage_failed("save", "transaction", e, tx.id)

        self.state.put_transaction(saved)
        await self._audit.log_saved(
            "transaction",
            saved.id,
            amount=saved.amount,
            type=saved.type.value,
        )
        return MutationResult(success=True, entity_id=saved.id)

    async def delete_transaction(self, tx_id: str) -> MutationResult:
        if not await self._confirmed(
            "delete transaction",
            "Delete transaction",
            "Are you sure you want to delete this transaction?",
            "transaction",
            tx_id,
        ):
            return MutationResult(success=False, entity_id=tx_id, cancelled=True)

        try:
            await self._transactions.delete_transaction(tx_id)
        except StorageError as e:
            return await self._storage_failed("delete", "transaction", e, tx_id)

        self.state.remove_transaction(tx_id)
        await self._audit.log_deleted("transaction", tx_id)
        return MutationResult(success=True, entity_id=tx_id)

    # ----- subscriptions -----

    def new_subscription_form(self) -> SubscriptionForm:
        first = self.state.cards[0].id if self.state.cards else ""
        return SubscriptionForm.blank(first)

    async def save_subscription(
        self,
        form: SubscriptionForm,
        editing: Optional[Subscription] = None,
    ) -> MutationResult:
        sub, result = self._validator.build_subscription(form, editing)
        if sub is None:
            return await self._rejected(result)

        try:
            saved = await self._subscriptions.upsert_subscription(sub)
        except StorageError as e:
            return await self._storage_failed("save", "subscription", e, sub.id)

        self.state.put_subscription(saved)
        await self._audit.log_saved("subscription", saved.id, name=saved.name)
        return MutationResult(success=True, entity_id=saved.id)

    async def delete_subscription(self, sub_id: str) -> MutationResult:
        if not await self._confirmed(
            "delete subscription",
            "Delete subscription",
            "Are you sure you want to delete this subscription?",
            "subscription",
            sub_id,
        ):
            return MutationResult(success=False, entity_id=sub_id, cancelled=True)

        try:
            await self._subscriptions.delete_subscription(sub_id)
        except StorageError as e:
            return await self._storage_failed("delete", "subscription", e, sub_id)

        self.state.remove_subscription(sub_id)
        await self._audit.log_deleted("subscription", sub_id)
        return MutationResult(success=True, entity_id=sub_id)

    # ----- schedule views -----

    def upcoming_payments(self) -> list[UpcomingPayment]:
        """Active subscriptions and credit card bills, soonest first."""
        return upcoming_payments(
            self.state.cards,
            self.state.subscriptions,
            self._today(),
            self.state.transactions,
            threshold=self._urgency_threshold,
            language=self._language,
        )

    def payment_status(self, card_id: str) -> Optional[PaymentStatus]:
        card = self.state.find_card(card_id)
        if card is None:
            return None
        return card_payment_status(
            card,
            self.state.transactions,
            self._today(),
            threshold=self._urgency_threshold,
        )

    # ----- forms -----

    async def request_close_form(
        self,
        form: Union[TransactionForm, CardForm, SubscriptionForm],
        original: Optional[Union[Transaction, Card, Subscription]] = None,
    ) -> bool:
        """
        Ask before discarding typed changes.

        Returns True when the form may close.
        """
        if isinstance(form, TransactionForm):
            dirty, entity_type = is_transaction_form_dirty(form, original), "transaction"
        elif isinstance(form, CardForm):
            dirty, entity_type = is_card_form_dirty(form, original), "card"
        else:
            # Subscription forms close without a prompt
            return True

        if not dirty:
            return True

        if await self._confirmer.confirm(
            "Discard changes?",
            f"You have unsaved changes in this {entity_type}. Close anyway?",
        ):
            await self._audit.log(AuditEventBuilder.changes_discarded(entity_type))
            return True
        return False

    # ----- AI -----

    async def get_advice(self) -> str:
        """Financial advice for the current snapshot. Falls back to a fixed text."""
        advisor = self.advisor
        if advisor is None:
            await self._ai_unavailable("advice")
            return fallback_text("advice_error", self._language)

        text = await advisor.get_financial_advice(
            self.state.total_balance(),
            self.state.cards_with_balances(),
            self.state.transactions,
        )
        if text in FALLBACK_TEXTS.get(self._language, FALLBACK_TEXTS["en"]).values():
            await self._audit.log(AuditEventBuilder.ai_fallback_used("advice"))
        return text

    async def scan_receipt(self, image_bytes: bytes) -> Optional[TransactionForm]:
        """
        Propose a new expense from a receipt photo.

        Returns a prefilled form for the user to review and save, or None
        when the receipt could not be read.
        """
        try:
            prepared = prepare_image(image_bytes)
        except ImageProcessingError as e:
            await self._audit.log_error("image_processing", str(e))
            self._notifier.notify("An error occurred while processing the image.", level="error")
            return None

        agent = self.receipt_agent
        if agent is None:
            await self._ai_unavailable("receipt extraction")
            return None

        info = await agent.extract_receipt_info(prepared)
        if info is None:
            await self._audit.log(AuditEventBuilder.ai_fallback_used("receipt extraction"))
            self._notifier.notify(
                "Could not extract the receipt information automatically.",
                level="warning",
            )
            return None

        await self._audit.log(AuditEventBuilder.receipt_extracted(info.amount, info.category))
        form = self.new_transaction_form()
        return form.model_copy(update={
            "type": TransactionType.EXPENSE,
            "amount": str(info.amount),
            "description": info.description,
            "category": info.category,
        })

    async def analyze_image(self, image_bytes: bytes) -> str:
        try:
            prepared = prepare_image(image_bytes)
        except ImageProcessingError as e:
            await self._audit.log_error("image_processing", str(e))
            return fallback_text("image_error", self._language)

        agent = self.receipt_agent
        if agent is None:
            await self._ai_unavailable("image analysis")
            return fallback_text("image_error", self._language)
        return await agent.analyze_image(prepared)

    # ----- preferences -----

    def _persist_preferences(self, preferences: UserPreferences) -> UserPreferences:
        self.state.preferences = preferences
        try:
            self._preferences_store.save(preferences)
        except OSError as e:
            logger.error("preferences_save_failed", error=str(e))
            self._notifier.notify("Preferences could not be saved on this device.", level="error")
        return preferences

    def update_notification(
        self,
        update: Union[EnabledUpdate, FrequencyUpdate],
    ) -> UserPreferences:
        """Change one notification field and persist the preferences."""
        return self._persist_preferences(
            apply_notification_update(self.state.preferences, update)
        )

    def update_preferences(self, **changes) -> UserPreferences:
        """Change top-level preferences (currency, default_card_id)."""
        try:
            updated = UserPreferences.model_validate({
                **self.state.preferences.model_dump(),
                **changes,
            })
        except ValidationError as e:
            logger.warning("preferences_rejected", error=str(e))
            self._notifier.notify("Invalid preference value.", level="warning")
            return self.state.preferences
        return self._persist_preferences(updated)

    # ----- profile -----

    async def load_profile(self) -> Optional[Profile]:
        if self._profiles is None:
            return None
        try:
            profile = await self._profiles.get_profile()
        except StorageError as e:
            await self._audit.log_storage_failed("load", "profile", e)
            return None
        self.state.profile = profile
        return profile

    async def update_profile(self, **updates) -> MutationResult:
        if self._profiles is None:
            return MutationResult(success=False, message="Profiles are not available")
        try:
            profile = await self._profiles.upsert_profile(updates)
        except (StorageError, ValidationError) as e:
            await self._audit.log_storage_failed("save", "profile", e)
            message = f"Error updating profile: {e}"
            self._notifier.notify(message, level="error")
            return MutationResult(success=False, message=message)

        self.state.profile = profile
        await self._audit.log_saved("profile", profile.id)
        self._notifier.notify("Profile updated", level="success")
        return MutationResult(success=True, entity_id=profile.id)

    def clear(self) -> None:
        """Sign-out: drop the user's data from memory."""
        self.state.clear()


def create_session(
    user_id: Optional[str],
    use_storage: bool = True,
    **kwargs,
) -> tuple[FinanceSession, Optional[GoogleSheetsClient]]:
    """
    Factory function to create a session for a user.

    Args:
        user_id: Id of the signed-in user, None when signed out
        use_storage: Whether to use Google Sheets. When False, or when
                    Sheets is not configured, data stays in memory.
        **kwargs: Passed through to FinanceSession

    Returns:
        (session, sheets_client)
    """
    if use_storage:
        try:
            client = GoogleSheetsClient(user_id)
            session = FinanceSession(
                card_storage=GoogleSheetsCardStorage(client),
                transaction_storage=GoogleSheetsTransactionStorage(client),
                subscription_storage=GoogleSheetsSubscriptionStorage(client),
                profile_storage=GoogleSheetsProfileStorage(client),
                audit_logger=AuditLogger(GoogleSheetsAuditStorage(client)),
                **kwargs,
            )
            return session, client
        except ValidationError as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))

    store = InMemoryStore(user_id)
    session = FinanceSession(
        card_storage=InMemoryCardStorage(store),
        transaction_storage=InMemoryTransactionStorage(store),
        subscription_storage=InMemorySubscriptionStorage(store),
        profile_storage=InMemoryProfileStorage(store),
        **kwargs,
    )
    return session, None
