"""System settings repository. The settings table holds a single row with id=1."""

from core.base_repository import BaseRepository

SETTINGS_ID = 1

EDITABLE_FIELDS = ('sender_name', 'sender_email', 'oa_id', 'oa_secret_key',
                   'access_token', 'abitstore_api_url')


class SettingsRepository(BaseRepository):

    def get(self):
        """The settings row, or an empty dict when it has not been seeded."""
        return self.query_one('SELECT * FROM settings WHERE id = %s', (SETTINGS_ID,)) or {}

    def update(self, **fields):
        """Update the given fields of the settings row (upserting it if missing)."""
        fields = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if not fields:
            return self.get()
        columns = list(fields)
        placeholders = ', '.join(['%s'] * len(columns))
        assignments = ', '.join(f'{c} = EXCLUDED.{c}' for c in columns)
        return self.execute(f'''
            INSERT INTO settings (id, {', '.join(columns)})
            VALUES (%s, {placeholders})
            ON CONFLICT (id) DO UPDATE SET {assignments}, updated_at = CURRENT_TIMESTAMP
            RETURNING *
        ''', [SETTINGS_ID] + [fields[c] for c in columns], returning=True)

    def save_access_token(self, token):
        return self.update(access_token=token)
