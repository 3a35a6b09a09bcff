"""
Custom Exceptions untuk Mobile Sync Services
============================================

Definisi semua custom exceptions yang digunakan dalam business logic
"""

class SyncException(Exception):
    """Base exception untuk semua mobile sync errors"""
    def __init__(self, message, error_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

class ValidationError(SyncException):
    """Error untuk validation failures"""
    def __init__(self, message, field=None, details=None):
        super().__init__(message, 'VALIDATION_ERROR', details)
        self.field = field

class OrderValidationError(ValidationError):
    """Mobile order rejected before persistence. Never retried automatically."""
    def __init__(self, result, local_id=None):
        message = f"Order validation failed: {'; '.join(result.errors)}"
        super().__init__(message, details={
            'error_code': result.error_code,
            'validation_errors': list(result.errors)
        })
        self.error_code = result.error_code
        self.result = result
        self.local_id = local_id

class PersistenceError(SyncException):
    """A write to the staging store or the ledger failed"""
    def __init__(self, message, order_id=None, details=None):
        super().__init__(message, 'PERSISTENCE_ERROR', details)
        self.order_id = order_id

class BusinessRuleError(SyncException):
    """Error untuk business rule violations"""
    def __init__(self, message, rule_code=None, details=None):
        super().__init__(message, 'BUSINESS_RULE_ERROR', details)
        self.rule_code = rule_code

class ImmutableOrderError(BusinessRuleError):
    """Business fields of an imported/rejected mobile order cannot change"""
    def __init__(self, order_id, fields, details=None):
        message = f"Mobile order {order_id} is already processed; cannot change {', '.join(sorted(fields))}"
        super().__init__(message, 'IMMUTABLE_ORDER', details)
        self.order_id = order_id
        self.fields = fields

class NotFoundError(SyncException):
    """Error ketika resource tidak ditemukan"""
    def __init__(self, resource_type, resource_id, details=None):
        message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(message, 'NOT_FOUND', details)
        self.resource_type = resource_type
        self.resource_id = resource_id

class ReconciliationError(SyncException):
    """A detect/fix orphan pass failed. Safe to re-run."""
    def __init__(self, message, details=None):
        super().__init__(message, 'RECONCILIATION_ERROR', details)
