"""Journal database access - pooled psycopg2 connections and cursors"""
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from config.settings import settings
from config.logging import logger

_pool: Optional[pool.ThreadedConnectionPool] = None


def init_pool() -> pool.ThreadedConnectionPool:
    """Open the shared pool on first use; later calls return it unchanged"""
    global _pool
    if _pool is not None:
        return _pool

    try:
        _pool = pool.ThreadedConnectionPool(
            minconn=settings.postgres_pool_min,
            maxconn=settings.postgres_pool_max,
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.postgres_db,
            user=settings.postgres_user,
            password=settings.postgres_password,
        )
    except psycopg2.Error as e:
        logger.error("Journal database unreachable", host=settings.postgres_host,
                     database=settings.postgres_db, error=str(e))
        raise

    logger.info(
        "Journal database pool ready",
        host=settings.postgres_host,
        database=settings.postgres_db,
        connections=f"{settings.postgres_pool_min}-{settings.postgres_pool_max}"
    )
    return _pool


def close_pool():
    global _pool
    if _pool is None:
        return
    _pool.closeall()
    _pool = None
    logger.info("Journal database pool closed")


@contextmanager
def get_connection():
    """One transaction on a pooled connection: commit on success, roll back on any error"""
    connections = init_pool()
    conn = connections.getconn()
    try:
        yield conn
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error("Journal query failed", pgcode=e.pgcode, error=str(e))
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        connections.putconn(conn)


@contextmanager
def get_cursor(dict_rows: bool = False) -> Iterator:
    """Cursor inside its own transaction; ``dict_rows`` yields rows keyed by column name"""
    with get_connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor if dict_rows else None) as cur:
            yield cur
