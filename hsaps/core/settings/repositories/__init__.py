"""Settings repositories package."""
from .settings_repository import SettingsRepository
from .email_template_repository import EmailTemplateRepository

__all__ = ['SettingsRepository', 'EmailTemplateRepository']
