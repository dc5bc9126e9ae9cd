"""Database repositories"""
from .trades import TradeRepository
from .accounts import AccountRepository

__all__ = ['TradeRepository', 'AccountRepository']
