"""Document Repository - data access for event_documents."""
from core.base_repository import BaseRepository
from core.utils.listing import build_where

DOCUMENT_FIELDS = ('name', 'description', 'type', 'file_url', 'thumbnail_url')


class DocumentRepository(BaseRepository):

    def get_by_id(self, document_id):
        return self.query_one('SELECT * FROM event_documents WHERE id = %s', (document_id,))

    def list_documents(self, query):
        """Newest first. Returns (rows, total)."""
        where_clause, params = build_where(query, ('name', 'description'), {'type': 'type'})
        return self.paginate(
            f'SELECT * FROM event_documents{where_clause}',
            f'SELECT COUNT(*) AS total FROM event_documents{where_clause}',
            params, 'created_at DESC', query.limit, query.offset,
        )

    def create(self, data):
        return self.insert_row('event_documents', {k: data[k] for k in DOCUMENT_FIELDS if k in data})

    def update(self, document_id, data):
        return self.update_row('event_documents', document_id,
                               {k: data[k] for k in DOCUMENT_FIELDS if k in data})

    def delete(self, document_id):
        return self.execute('DELETE FROM event_documents WHERE id = %s', (document_id,)) > 0
