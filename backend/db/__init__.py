"""Database module"""
from .connection import get_connection, get_cursor, init_pool, close_pool
from .stores import TradeStore, AccountStore
from .repositories import TradeRepository, AccountRepository

__all__ = [
    'get_connection', 'get_cursor', 'init_pool', 'close_pool',
    'TradeStore', 'AccountStore',
    'TradeRepository', 'AccountRepository',
]
