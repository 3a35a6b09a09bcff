"""
API Dependencies
================

FastAPI dependencies for the mobile sync application.
"""

from fastapi import Depends, Header
from typing import Optional

from .services import ServiceRegistry, create_service_registry
from .database import get_db_session
from .config import settings


# Dependency untuk operator identity
async def get_current_operator(
    x_operator: Optional[str] = Header(None, alias="X-Operator")
) -> str:
    """Operator dari header X-Operator; authentication is handled upstream"""
    operator = (x_operator or '').strip()
    return operator or settings.DEFAULT_OPERATOR


# Dependency untuk get service registry
async def get_service_registry(
    db_session = Depends(get_db_session),
    current_operator: str = Depends(get_current_operator)
) -> ServiceRegistry:
    """Get service registry dengan current operator"""
    return create_service_registry(
        db_session=db_session,
        config=settings.model_dump(),
        current_user=current_operator
    )
