"""
API Response Models
===================

Standardized API response models.
"""

class APIResponse:
    """Standard API response format"""

    @staticmethod
    def success(data=None, message="Success"):
        return {
            "success": True,
            "message": message,
            "data": data
        }

    @staticmethod
    def error(message="Error", error_code=None, details=None, request_id=None):
        return {
            "success": False,
            "message": message,
            "error_code": error_code,
            "details": details,
            "request_id": request_id
        }
