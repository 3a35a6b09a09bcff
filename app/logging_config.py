"""
Logging Configuration
=====================

Setup logging untuk aplikasi: console handler dengan format text atau JSON.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Dict, Any


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'request_id'):
            log_entry['request_id'] = record.request_id
        if hasattr(record, 'sales_rep_id'):
            log_entry['sales_rep_id'] = record.sales_rep_id
        if hasattr(record, 'duration'):
            log_entry['duration'] = record.duration

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def get_logging_config(level: str = "INFO", log_format: str = "text") -> Dict[str, Any]:
    """Build a dictConfig mapping."""
    formatter = 'json' if log_format == 'json' else 'standard'
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                '()': JSONFormatter
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': formatter,
                'level': level
            }
        },
        'loggers': {
            'app': {'handlers': ['console'], 'level': level, 'propagate': False},
            'sqlalchemy.engine': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
            'uvicorn.access': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        },
        'root': {'handlers': ['console'], 'level': level}
    }


def setup_logging(level: str = "INFO", log_format: str = "text"):
    """Apply logging configuration once at startup."""
    logging.config.dictConfig(get_logging_config(level.upper(), log_format))
