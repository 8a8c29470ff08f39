"""Base Repository: connection handling shared by every repository.

Provides query_one(), query_all(), execute(), execute_many() that handle
get_db()/get_cursor()/release_db() and try/finally automatically.

Usage:
    class SponsorRepository(BaseRepository):
        def get_by_id(self, sponsor_id):
            return self.query_one('SELECT * FROM sponsors WHERE id = %s', (sponsor_id,))

        def create(self, name):
            return self.execute(
                'INSERT INTO sponsors (name) VALUES (%s) RETURNING *',
                (name,), returning=True
            )

        def two_step(self):
            def _work(cursor):
                cursor.execute('INSERT ...')
                cursor.execute('UPDATE ...')
                return cursor.fetchone()
            return self.execute_many(_work)
"""

from database import get_db, get_cursor, release_db, dict_from_row


class BaseRepository:

    def query_one(self, sql, params=None):
        """Execute a SELECT and return a single row as dict, or None."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            row = cursor.fetchone()
            return dict_from_row(row) if row else None
        finally:
            release_db(conn)

    def query_all(self, sql, params=None):
        """Execute a SELECT and return all rows as list of dicts."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            return [dict_from_row(r) for r in cursor.fetchall()]
        finally:
            release_db(conn)

    def execute(self, sql, params=None, returning=False):
        """Execute an INSERT/UPDATE/DELETE with auto-commit.

        Returns:
            dict if returning=True, else int (rowcount)
        """
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            if returning:
                result = cursor.fetchone()
                conn.commit()
                return dict_from_row(result) if result else None
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)

    def execute_many(self, callback):
        """Execute multiple statements in a single transaction.

        Args:
            callback: Function that receives (cursor) and returns a result.
                      All statements within callback share one connection/transaction.
        """
        conn = get_db()
        try:
            conn.autocommit = False
            cursor = get_cursor(conn)
            result = callback(cursor)
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)

    def insert_row(self, table, data):
        """INSERT the given column->value dict and return the new row.

        Table and column names come from the repository's own field lists.
        """
        columns = list(data.keys())
        return self.execute(f'''
            INSERT INTO {table} ({', '.join(columns)})
            VALUES ({', '.join(['%s'] * len(columns))})
            RETURNING *
        ''', [data[c] for c in columns], returning=True)

    def update_row(self, table, row_id, data):
        """UPDATE the given columns of one row by id. Returns the row, or None if missing."""
        if not data:
            return self.query_one(f'SELECT * FROM {table} WHERE id = %s', (row_id,))
        columns = list(data.keys())
        assignments = ', '.join(f'{c} = %s' for c in columns)
        return self.execute(f'''
            UPDATE {table} SET {assignments}, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING *
        ''', [data[c] for c in columns] + [row_id], returning=True)

    def paginate(self, select_sql, count_sql, params, order_by, limit, offset):
        """Run a ranged SELECT and its COUNT in one round trip.

        Returns (rows, total).
        """
        def _work(cursor):
            cursor.execute(f'{select_sql} ORDER BY {order_by} LIMIT %s OFFSET %s',
                           list(params) + [limit, offset])
            rows = [dict_from_row(r) for r in cursor.fetchall()]
            cursor.execute(count_sql, list(params))
            total = cursor.fetchone()['total']
            return rows, total
        return self.execute_many(_work)
