"""Form helpers shared by the edit flows."""

from cardledger.forms.dirty import is_card_form_dirty, is_transaction_form_dirty

__all__ = [
    "is_card_form_dirty",
    "is_transaction_form_dirty",
]
