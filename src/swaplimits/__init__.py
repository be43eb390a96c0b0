"""Swap limit engine for NIM/BTC wallets.

Reports how much a user may currently swap, given remote quotas, local
transaction history and the new-user EUR allowance.
"""

__version__ = "0.1.0"
