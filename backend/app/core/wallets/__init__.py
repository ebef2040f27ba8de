"""
Wallets domain
"""
from app.core.wallets.models import Wallet, WalletStatus

__all__ = [
    "Wallet",
    "WalletStatus",
]
