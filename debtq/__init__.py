"""
debtq - Personal Debt Ledger

Tracks money borrowed from and lent to named people, and settles it.

DESIGN PRINCIPLES:
1. One owner mutates the ledger at a time
2. Reject bad input before touching any record
3. Settled records are never changed again
4. Every mutation is audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "debtq Team"
