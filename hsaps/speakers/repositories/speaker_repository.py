"""Speaker Repository - data access for the speakers table."""
import logging
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository
from core.status import to_storage
from core.utils.listing import build_where

logger = logging.getLogger('hsaps.speakers.repository')

SPEAKER_TYPES = ('Chủ tọa', 'Báo cáo viên', 'Chủ tọa/Báo cáo viên')

FILE_FIELDS = ('avatar_url', 'passport_url', 'abstract_file_url', 'report_file_url', 'cv_url')

SPEAKER_FIELDS = (
    'full_name', 'academic_rank', 'email', 'phone', 'workplace',
    'report_title_vn', 'report_title_en', 'status', 'speaker_type',
) + FILE_FIELDS

_SEARCH_COLUMNS = ('full_name', 'email', 'workplace', 'report_title_vn')
_FILTER_COLUMNS = {'status': 'status', 'speaker_type': 'speaker_type'}


class SpeakerRepository(BaseRepository):

    def get_by_id(self, speaker_id: int) -> Optional[Dict[str, Any]]:
        return self.query_one('SELECT * FROM speakers WHERE id = %s', (speaker_id,))

    def list_speakers(self, query):
        """One page of speakers ordered by name. Returns (rows, total)."""
        where_clause, params = build_where(query, _SEARCH_COLUMNS, _FILTER_COLUMNS)
        return self.paginate(
            f'SELECT * FROM speakers{where_clause}',
            f'SELECT COUNT(*) AS total FROM speakers{where_clause}',
            params, 'full_name ASC', query.limit, query.offset,
        )

    def get_options(self) -> List[Dict[str, Any]]:
        """id, name and report titles for pickers (program schedule)."""
        return self.query_all('''
            SELECT id, full_name, report_title_vn, report_title_en
            FROM speakers ORDER BY full_name
        ''')

    def get_by_status(self, status) -> List[Dict[str, Any]]:
        return self.query_all('SELECT * FROM speakers WHERE status = %s ORDER BY full_name',
                              (to_storage('speaker', status),))

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a speaker. A duplicate email raises psycopg2 UniqueViolation (23505)."""
        return self.insert_row('speakers', {k: data[k] for k in SPEAKER_FIELDS if k in data})

    def update(self, speaker_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.update_row('speakers', speaker_id,
                               {k: data[k] for k in SPEAKER_FIELDS if k in data})

    def update_status(self, speaker_id: int, status: str) -> Optional[Dict[str, Any]]:
        return self.update_row('speakers', speaker_id, {'status': status})

    def delete(self, speaker_id: int) -> bool:
        return self.execute('DELETE FROM speakers WHERE id = %s', (speaker_id,)) > 0
