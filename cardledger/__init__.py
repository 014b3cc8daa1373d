"""
Card Ledger - Source Package

Personal finance tracking core for people juggling several cards,
recurring subscriptions and credit card bills.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Local state changes only after the store confirms
3. Destructive actions always ask first
4. AI is advisory - it never writes data on its own
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Card Ledger Team"
