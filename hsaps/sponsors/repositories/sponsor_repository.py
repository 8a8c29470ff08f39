"""Sponsor Repository - data access for the sponsors table."""
from typing import Optional, Dict, Any

from core.base_repository import BaseRepository
from core.utils.listing import build_where

SPONSORSHIP_PACKAGES = ('Kim cương', 'Vàng', 'Bạc', 'Đồng', 'Khác')

SPONSOR_FIELDS = (
    'name', 'sponsorship_package', 'amount', 'status', 'contact_person', 'email',
    'phone', 'logo_url', 'contract_url', 'contract_status', 'notes', 'location',
)

_SEARCH_COLUMNS = ('name', 'contact_person', 'phone')


class SponsorRepository(BaseRepository):

    def get_by_id(self, sponsor_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('SELECT * FROM sponsors WHERE id = %s', (sponsor_id,))

    def list_sponsors(self, query):
        """One page of sponsors ordered by name. Returns (rows, total)."""
        where_clause, params = build_where(query, _SEARCH_COLUMNS, {'status': 'status'})
        return self.paginate(
            f'SELECT * FROM sponsors{where_clause}',
            f'SELECT COUNT(*) AS total FROM sponsors{where_clause}',
            params, 'name ASC', query.limit, query.offset,
        )

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.insert_row('sponsors', {k: data[k] for k in SPONSOR_FIELDS if k in data})

    def update(self, sponsor_id: int, data: Dict[str, Any]):
        """Returns (old, new); both None when the sponsor does not exist."""
        old = self.get_by_id(sponsor_id)
        if not old:
            return None, None
        new = self.update_row('sponsors', sponsor_id, {k: data[k] for k in SPONSOR_FIELDS if k in data})
        return old, new

    def delete(self, sponsor_id: int) -> bool:
        return self.execute('DELETE FROM sponsors WHERE id = %s', (sponsor_id,)) > 0

    def count_by_status(self, status: str) -> int:
        row = self.query_one('SELECT COUNT(*) AS cnt FROM sponsors WHERE status = %s', (status,))
        return row['cnt'] if row else 0
