"""Transaction Repository - data access for finance_transactions."""
from typing import Optional, Dict, Any

from core.base_repository import BaseRepository
from core.utils.listing import build_where

TYPE_INCOME = 'Thu'
TYPE_EXPENSE = 'Chi'
TRANSACTION_TYPES = (TYPE_INCOME, TYPE_EXPENSE)
ACCOUNTS = ('TK Lộc Phát', 'TK Hội Nghị')
PAYMENT_METHODS = ('Chuyển khoản', 'Tiền mặt', 'Khác')

TRANSACTION_FIELDS = (
    'title', 'type', 'amount', 'category', 'transaction_date', 'handler_id',
    'account', 'payment_method', 'receipt_url', 'notes',
)

_SEARCH_COLUMNS = ('ft.title', 'ft.notes')
_FILTER_COLUMNS = {'type': 'ft.type', 'account': 'ft.account'}

_SELECT = '''
    SELECT ft.*, p.full_name AS handler_name
    FROM finance_transactions ft
    LEFT JOIN profiles p ON p.id = ft.handler_id
'''


class TransactionRepository(BaseRepository):

    def get_by_id(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one(f'{_SELECT} WHERE ft.id = %s', (transaction_id,))

    def list_transactions(self, query):
        """One page, latest transaction date first. Returns (rows, total)."""
        where_clause, params = build_where(query, _SEARCH_COLUMNS, _FILTER_COLUMNS)
        return self.paginate(
            f'{_SELECT}{where_clause}',
            f'SELECT COUNT(*) AS total FROM finance_transactions ft{where_clause}',
            params, 'ft.transaction_date DESC, ft.id DESC', query.limit, query.offset,
        )

    def summary(self, query) -> Dict[str, float]:
        """Income, expense and balance under the account and search filters (type ignored)."""
        scoped = query.with_filters(type='All')
        where_clause, params = build_where(scoped, _SEARCH_COLUMNS, _FILTER_COLUMNS)
        row = self.query_one(f'''
            SELECT
                COALESCE(SUM(CASE WHEN ft.type = %s THEN ft.amount ELSE 0 END), 0) AS total_income,
                COALESCE(SUM(CASE WHEN ft.type = %s THEN ft.amount ELSE 0 END), 0) AS total_expense
            FROM finance_transactions ft{where_clause}
        ''', [TYPE_INCOME, TYPE_EXPENSE] + params)
        income = float(row['total_income']) if row else 0.0
        expense = float(row['total_expense']) if row else 0.0
        return {'total_income': income, 'total_expense': expense, 'balance': income - expense}

    def total_income(self) -> float:
        row = self.query_one(
            'SELECT COALESCE(SUM(amount), 0) AS total FROM finance_transactions WHERE type = %s',
            (TYPE_INCOME,))
        return float(row['total']) if row else 0.0

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = self.insert_row('finance_transactions',
                              {k: data[k] for k in TRANSACTION_FIELDS if k in data})
        return self.get_by_id(row['id'])

    def update(self, transaction_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = self.update_row('finance_transactions', transaction_id,
                              {k: data[k] for k in TRANSACTION_FIELDS if k in data})
        return self.get_by_id(transaction_id) if row else None

    def delete(self, transaction_id: int) -> bool:
        return self.execute('DELETE FROM finance_transactions WHERE id = %s', (transaction_id,)) > 0
