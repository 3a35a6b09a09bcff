"""
Reporting Domain Services
=========================

Services untuk import reports
"""

from .import_report_service import ImportReportService

__all__ = [
    'ImportReportService'
]
