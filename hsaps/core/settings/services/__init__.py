"""Settings services package."""
from .messaging_service import MessagingService
from .templates import render_template_text, to_html

__all__ = ['MessagingService', 'render_template_text', 'to_html']
