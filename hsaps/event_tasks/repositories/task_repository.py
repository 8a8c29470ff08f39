"""Task Repository - data access for the tasks table.

Statuses cross the boundary through core.status: rows are written with the
legacy keys for In progress / Completed and read back as display labels.
"""
from typing import Optional, Dict, Any, List

from core.base_repository import BaseRepository
from core.status import Status, to_storage, from_storage, storage_values
from core.utils.listing import build_where

TASK_FIELDS = ('title', 'description', 'status', 'due_date', 'assignee_id')

_SELECT = '''
    SELECT t.*, p.full_name AS assignee_name, p.avatar AS assignee_avatar
    FROM tasks t
    LEFT JOIN profiles p ON p.id = t.assignee_id
'''


def _status_filter(value):
    values = storage_values('task', value)
    return 't.status = ANY(%s)', [values]


def _read(row):
    if row:
        row['status'] = from_storage('task', row.get('status'))
    return row


def _write(data):
    payload = {k: data[k] for k in TASK_FIELDS if k in data}
    if payload.get('status'):
        payload['status'] = to_storage('task', payload['status'])
    return payload


class TaskRepository(BaseRepository):

    def get_by_id(self, task_id: int) -> Optional[Dict[str, Any]]:
        return _read(self.query_one(f'{_SELECT} WHERE t.id = %s', (task_id,)))

    def list_tasks(self, query):
        """One page of tasks by due date, assignee name joined. Returns (rows, total)."""
        where_clause, params = build_where(
            query, ('t.title', 't.description'),
            {'status': _status_filter, 'assignee_id': 't.assignee_id'},
        )
        rows, total = self.paginate(
            f'{_SELECT}{where_clause}',
            f'SELECT COUNT(*) AS total FROM tasks t{where_clause}',
            params, 't.due_date ASC NULLS LAST, t.id', query.limit, query.offset,
        )
        return [_read(r) for r in rows], total

    def get_upcoming_open(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Open tasks (not Completed) with the nearest due date first."""
        rows = self.query_all(f'''
            {_SELECT}
            WHERE t.status <> ALL(%s)
            ORDER BY t.due_date ASC NULLS LAST
            LIMIT %s
        ''', (storage_values('task', Status.COMPLETED), limit))
        return [_read(r) for r in rows]

    def count_open(self) -> int:
        row = self.query_one('SELECT COUNT(*) AS cnt FROM tasks WHERE status <> ALL(%s)',
                             (storage_values('task', Status.COMPLETED),))
        return row['cnt'] if row else 0

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = self.insert_row('tasks', _write(data))
        return self.get_by_id(row['id'])

    def update(self, task_id: int, data: Dict[str, Any]):
        """Returns (old, new); both None when the task does not exist."""
        old = self.get_by_id(task_id)
        if not old:
            return None, None
        self.update_row('tasks', task_id, _write(data))
        return old, self.get_by_id(task_id)

    def delete(self, task_id: int) -> bool:
        return self.execute('DELETE FROM tasks WHERE id = %s', (task_id,)) > 0
