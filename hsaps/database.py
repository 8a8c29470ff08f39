"""PostgreSQL access for HSAPS.

One lazily created ThreadedConnectionPool per worker. psycopg2's pool raises
PoolError as soon as it is exhausted, so checkouts are gated by a semaphore
sized to the pool: a request waits up to DB_POOL_TIMEOUT seconds for a free
connection instead of failing immediately.

Repositories never call this module directly; they go through
core.base_repository.BaseRepository.
"""
import os
import time
import logging
import threading
from decimal import Decimal

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

logger = logging.getLogger('hsaps.database')

DATABASE_URL = os.environ.get('DATABASE_URL')
if not DATABASE_URL:
    raise ValueError('DATABASE_URL environment variable is required (PostgreSQL connection string).')

POOL_MIN_CONN = int(os.environ.get('DB_POOL_MIN_CONN', '2'))
POOL_MAX_CONN = int(os.environ.get('DB_POOL_MAX_CONN', '8'))
POOL_GETCONN_TIMEOUT = float(os.environ.get('DB_POOL_TIMEOUT', '10'))
STALE_CONNECTION_RETRIES = 3

_pool = None
_pool_lock = threading.Lock()
_slots = threading.BoundedSemaphore(POOL_MAX_CONN)


def _get_pool():
    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                _pool = pool.ThreadedConnectionPool(
                    minconn=POOL_MIN_CONN,
                    maxconn=POOL_MAX_CONN,
                    dsn=DATABASE_URL,
                    connect_timeout=5,
                    keepalives=1,
                    keepalives_idle=30,
                    keepalives_interval=10,
                    keepalives_count=5,
                    application_name='hsaps',
                )
                logger.info(f'Connection pool ready (min={POOL_MIN_CONN}, max={POOL_MAX_CONN})')
    return _pool


def _discard(conn):
    try:
        _get_pool().putconn(conn, close=True)
    except pool.PoolError as e:
        logger.debug(f'Discarding connection failed: {e}')
    finally:
        _slots.release()


def get_db():
    """Check a healthy connection out of the pool.

    A connection the server already closed is thrown away and another one
    taken, up to STALE_CONNECTION_RETRIES times. The connection is returned in
    autocommit mode; BaseRepository.execute_many switches it off per transaction.
    """
    last_error = None
    for attempt in range(1, STALE_CONNECTION_RETRIES + 1):
        if not _slots.acquire(timeout=POOL_GETCONN_TIMEOUT):
            raise psycopg2.OperationalError(
                f'No database connection available after {POOL_GETCONN_TIMEOUT:g}s')
        try:
            conn = _get_pool().getconn()
        except Exception:
            _slots.release()
            raise

        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            conn.rollback()
            conn.autocommit = True
            return conn
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            last_error = e
            logger.warning(f'Stale connection dropped ({attempt}/{STALE_CONNECTION_RETRIES}): {e}')
            _discard(conn)

    raise psycopg2.OperationalError(f'Could not obtain a working connection: {last_error}')


def release_db(conn):
    """Give a connection back to the pool; broken connections are closed instead."""
    if conn is None or _pool is None:
        return
    if conn.closed:
        _discard(conn)
        return
    try:
        conn.autocommit = False
        _pool.putconn(conn)
    except (psycopg2.Error, pool.PoolError) as e:
        logger.warning(f'Returning connection to pool failed, closing it: {e}')
        _discard(conn)
    else:
        _slots.release()


def get_cursor(conn):
    """Cursor whose rows are dicts keyed by column name."""
    return conn.cursor(cursor_factory=RealDictCursor)


_PING_TTL = 5
_last_ping = {'ok': False, 'at': 0.0}


def ping_db():
    """True when the database answers; a success is remembered for a few seconds (health checks)."""
    now = time.time()
    if _last_ping['ok'] and now - _last_ping['at'] < _PING_TTL:
        return True
    try:
        conn = get_db()
    except psycopg2.Error as e:
        logger.warning(f'Database ping failed: {e}')
        _last_ping['ok'] = False
        return False
    try:
        with conn.cursor() as cur:
            cur.execute('SELECT 1')
        _last_ping.update(ok=True, at=now)
        return True
    except psycopg2.Error as e:
        logger.warning(f'Database ping failed: {e}')
        _last_ping['ok'] = False
        return False
    finally:
        release_db(conn)


def init_db():
    """Create tables and seed data on first start.

    Runs migrations.init_schema.create_schema() when the `submissions` table
    does not exist yet. Called from app startup, never on import.
    """
    conn = get_db()
    try:
        cursor = get_cursor(conn)
        cursor.execute("SELECT to_regclass('public.submissions') IS NOT NULL AS present")
        if cursor.fetchone()['present']:
            logger.info('Schema present, skipping initialization')
            return

        from migrations.init_schema import create_schema
        conn.autocommit = False
        try:
            create_schema(conn, cursor)
        except Exception:
            conn.rollback()
            raise
        logger.info('Schema created and seeded')
    finally:
        release_db(conn)


def dict_from_row(row):
    """Row -> JSON-ready dict: dates as ISO strings, NUMERIC as float."""
    if row is None:
        return None
    result = dict(row)
    for key, value in result.items():
        if isinstance(value, Decimal):
            result[key] = float(value)
        elif hasattr(value, 'isoformat'):
            result[key] = value.isoformat()
    return result
