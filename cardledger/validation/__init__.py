from cardledger.validation.validator import FormValidator, random_last4

__all__ = ["FormValidator", "random_last4"]
