"""Program Repository - data access for program_items."""
from core.base_repository import BaseRepository
from core.utils.listing import build_where

PROGRAM_FIELDS = ('date', 'time', 'session', 'category', 'report_title_vn', 'report_title_en', 'speaker_id')

_SELECT = '''
    SELECT pi.*, s.full_name AS speaker_name, s.academic_rank AS speaker_academic_rank,
           s.avatar_url AS speaker_avatar_url
    FROM program_items pi
    LEFT JOIN speakers s ON s.id = pi.speaker_id
'''


class ProgramRepository(BaseRepository):

    def get_by_id(self, item_id):
        return self.query_one(f'{_SELECT} WHERE pi.id = %s', (item_id,))

    def list_items(self, query):
        """Ordered by date then time, speaker joined. Returns (rows, total)."""
        where_clause, params = build_where(
            query, ('pi.session', 'pi.report_title_vn', 'pi.report_title_en', 's.full_name'),
            {'date': 'pi.date', 'category': 'pi.category'},
        )
        return self.paginate(
            f'{_SELECT}{where_clause}',
            f'SELECT COUNT(*) AS total FROM program_items pi '
            f'LEFT JOIN speakers s ON s.id = pi.speaker_id{where_clause}',
            params, 'pi.date ASC, pi.time ASC', query.limit, query.offset,
        )

    def create(self, data):
        row = self.insert_row('program_items', {k: data[k] for k in PROGRAM_FIELDS if k in data})
        return self.get_by_id(row['id'])

    def update(self, item_id, data):
        row = self.update_row('program_items', item_id, {k: data[k] for k in PROGRAM_FIELDS if k in data})
        return self.get_by_id(item_id) if row else None

    def delete(self, item_id):
        return self.execute('DELETE FROM program_items WHERE id = %s', (item_id,)) > 0
