"""
Notification Service
====================

Service untuk pesan sukses/gagal yang ditampilkan ke operator dan device.
Messages are rendered from jinja2 templates, logged and returned in API
responses; delivery channels are handled elsewhere.
"""

from typing import Dict
import logging

from jinja2 import Template


class NotificationService:
    """Service untuk rendering notification messages"""

    def __init__(self, templates: Dict[str, str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.templates = self._load_templates()
        if templates:
            self.templates.update(templates)
        self._compiled: Dict[str, Template] = {}

    def render(self, event: str, **context) -> str:
        """Render the message for an event; unknown events raise KeyError"""
        if event not in self.templates:
            raise KeyError(f"Notification template not found for: {event}")

        template = self._compiled.get(event)
        if template is None:
            template = Template(self.templates[event], trim_blocks=True, lstrip_blocks=True)
            self._compiled[event] = template

        message = template.render(**context).strip()
        level = logging.WARNING if event.endswith('_FAILED') or event.endswith('_PARTIAL') else logging.INFO
        self.logger.log(level, message)
        return message

    def _load_templates(self) -> Dict[str, str]:
        """Default message templates"""
        return {
            'INGEST_COMPLETED': (
                '{{ synced }} of {{ total }} order(s) synced'
                '{% if sales_rep_id %} for sales rep {{ sales_rep_id }}{% endif %}.'
            ),
            'INGEST_PARTIAL': (
                '{{ synced }} of {{ total }} order(s) synced'
                '{% if sales_rep_id %} for sales rep {{ sales_rep_id }}{% endif %}; '
                '{{ validation_errors }} failed validation, {{ other_errors }} failed to save.'
            ),
            'PULL_COMPLETED': '{{ count }} pending order(s) returned for sales rep {{ sales_rep_id }}.',
            'IMPORT_COMPLETED': '{{ succeeded }} order(s) imported by {{ operator }}.',
            'IMPORT_PARTIAL': (
                '{{ succeeded }} of {{ requested }} order(s) imported by {{ operator }}'
                '{% if already_processed %}; {{ already_processed }} already processed{% endif %}'
                '{% if not_found %}; {{ not_found }} not found{% endif %}'
                '{% if failed %}; {{ failed }} failed{% endif %}.'
            ),
            'REJECT_COMPLETED': '{{ succeeded }} order(s) rejected by {{ operator }}.',
            'REJECT_PARTIAL': (
                '{{ succeeded }} of {{ requested }} order(s) rejected by {{ operator }}'
                '{% if already_processed %}; {{ already_processed }} already processed{% endif %}'
                '{% if not_found %}; {{ not_found }} not found{% endif %}'
                '{% if failed %}; {{ failed }} failed{% endif %}.'
            ),
            'ORPHANS_FIXED': (
                '{% if fixed %}{{ fixed }} orphan order(s) returned to pending.'
                '{% else %}No orphan orders to fix.{% endif %}'
            ),
            'ORPHANS_FIX_FAILED': 'Failed to fix orphan orders: {{ error }}',
            'SYNC_LOGS_CLEARED': '{{ deleted }} sync log entries cleared.',
        }
