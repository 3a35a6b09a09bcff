"""
Base Service Classes
====================

Base classes dan utilities untuk semua services
"""

from abc import ABC
from typing import Optional
from functools import wraps
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import aliased

from .exceptions import NotFoundError

logger = logging.getLogger(__name__)

def transactional(func):
    """Decorator untuk automatic transaction management"""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            result = await func(self, *args, **kwargs)
            if hasattr(self, 'db_session') and self.db_session:
                await self.db_session.commit()
            return result
        except Exception as e:
            if hasattr(self, 'db_session') and self.db_session:
                await self.db_session.rollback()
            logger.error(f"Transaction failed in {func.__name__}: {str(e)}")
            raise
    return wrapper

class BaseService(ABC):
    """Base service class dengan common functionality"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 sync_log_service=None, notification_service=None):
        self.db_session = db_session
        self.current_user = current_user
        self.sync_log_service = sync_log_service
        self.notification_service = notification_service
        self.logger = logging.getLogger(self.__class__.__name__)

    async def _get_or_404(self, model_class, entity_id: str):
        """Get entity by ID or raise 404 error"""
        result = await self.db_session.execute(select(model_class).filter(model_class.id == entity_id))
        entity = result.scalars().first()
        if not entity:
            raise NotFoundError(model_class.__name__, entity_id)
        return entity

    @staticmethod
    def _next_code(model_class):
        """
        Next sequential code as a subquery embedded in the INSERT itself.

        The max is read under the write lock of the inserting statement, so
        concurrent writers never get the same code. The attribute is expired
        after flush; use `_flush_with_code` to read it back.
        """
        previous = aliased(model_class)
        return select(func.coalesce(func.max(previous.code), 0) + 1).scalar_subquery()

    async def _flush_with_code(self, entity):
        """Flush a new row and load the code assigned by the database"""
        await self.db_session.flush()
        await self.db_session.refresh(entity, attribute_names=["code"])
        return entity.code

    async def _log_sync_event(self, **kwargs) -> Optional[str]:
        """Append to the sync audit log; a failing append never fails the caller"""
        if not self.sync_log_service:
            return None
        try:
            return await self.sync_log_service.append(**kwargs)
        except Exception as e:
            self.logger.warning(f"Failed to write sync log: {str(e)}")
            return None

    def _notify(self, event: str, **context) -> Optional[str]:
        """Render a user-facing message through the notification service"""
        if not self.notification_service:
            return None
        try:
            return self.notification_service.render(event, **context)
        except Exception as e:
            self.logger.warning(f"Failed to render notification {event}: {str(e)}")
            return None
