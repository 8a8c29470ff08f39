"""Email template repository."""

from core.base_repository import BaseRepository

TEMPLATE_MODULES = ('submissions', 'speakers')


class EmailTemplateRepository(BaseRepository):

    def get_all(self, module=None):
        if module:
            return self.query_all(
                'SELECT * FROM email_templates WHERE module = %s ORDER BY id', (module,))
        return self.query_all('SELECT * FROM email_templates ORDER BY module, id')

    def get_by_id(self, template_id):
        return self.query_one('SELECT * FROM email_templates WHERE id = %s', (template_id,))

    def get_by_name(self, name):
        return self.query_one('SELECT * FROM email_templates WHERE name = %s', (name,))

    def update(self, template_id, subject, body):
        """Only subject and body are editable."""
        return self.execute('''
            UPDATE email_templates SET subject = %s, body = %s
            WHERE id = %s
            RETURNING *
        ''', (subject, body, template_id), returning=True)
