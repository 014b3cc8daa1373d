"""
Form Dirty-Checker

Decides whether closing an edit form would lose typed changes, which
gates the "discard changes?" confirmation. Comparison is on the form's
raw text against the saved entity rendered the same way.
"""

from typing import Optional

from cardledger.constants import DEFAULT_CATEGORY
from cardledger.models.finance import Card, Transaction
from cardledger.models.forms import CardForm, TransactionForm


def is_transaction_form_dirty(
    form: TransactionForm,
    original: Optional[Transaction],
) -> bool:
    """
    True when the transaction form holds unsaved edits.

    For a new transaction only amount and description count; the other
    fields are prefilled. Installments and the bill-payment flag are not
    compared.
    """
    if original is None:
        return bool(form.amount or form.description)

    saved = TransactionForm.from_entity(original)
    return (
        form.amount != saved.amount
        or form.description != saved.description
        or form.category != (original.category or DEFAULT_CATEGORY)
        or form.card_id != saved.card_id
        or form.date[:10] != saved.date
        or form.type != saved.type
    )


def is_card_form_dirty(form: CardForm, original: Optional[Card]) -> bool:
    """True when the card form holds unsaved edits."""
    if original is None:
        return bool(form.name or form.initial_balance or form.last4)

    saved = CardForm.from_entity(original)
    return (
        form.name != saved.name
        or form.initial_balance != saved.initial_balance
        or form.type != saved.type
        or form.color != saved.color
        or form.last4 != saved.last4
        or form.total_limit != saved.total_limit
    )
