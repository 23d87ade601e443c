# File: voicecrm/features/activities/domain/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from ..data.sql_models import ActivityModel


class IActivityRepository(ABC):
    @abstractmethod
    def add(self, activity: ActivityModel) -> ActivityModel:
        """Persists a new activity and returns it with generated columns filled."""
        pass

    @abstractmethod
    def get(self, activity_id: UUID) -> Optional[ActivityModel]:
        pass

    @abstractmethod
    def update(self, activity_id: UUID, mutate: Callable[[ActivityModel], bool]) -> Optional[ActivityModel]:
        """
        Loads, mutates and commits one activity inside a single transaction.
        `mutate` returns False to leave the row untouched.
        Returns None when the activity does not exist.
        """
        pass

    @abstractmethod
    def list_pending_review(self, limit: int) -> List[ActivityModel]:
        """Classified, unconfirmed activities, newest first."""
        pass

    @abstractmethod
    def list_created_since(self, since: datetime, created_by: Optional[str] = None) -> List[ActivityModel]:
        pass
