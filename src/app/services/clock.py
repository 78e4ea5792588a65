from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Source of the current time (naive UTC, matching stored timestamps)"""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.utcnow()
