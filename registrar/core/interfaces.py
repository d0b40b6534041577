"""
Core interfaces and abstract base classes for the Registrar engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from .enums import ReportFormat


T = TypeVar('T')


class Reportable(ABC):
    """Interface for components that can generate reports."""
    
    @abstractmethod
    def generate_report(self, subject_id: str, format: ReportFormat = ReportFormat.CSV) -> str:
        """Generate a report about ``subject_id`` in the specified format."""
        pass


class RecordStore(ABC):
    """Abstract base class for flat record storage."""
    
    @abstractmethod
    def read_rows(self, name: str) -> List[List[str]]:
        """Read every row of a collection. A missing collection is empty."""
        pass
    
    @abstractmethod
    def write_rows(self, name: str, rows: Iterable[List[str]]) -> int:
        """Replace a collection with ``rows``. Returns the number written."""
        pass
    
    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a collection has been written."""
        pass


class RowMapper(ABC, Generic[T]):
    """Abstract base class for converting entities to and from rows."""
    
    @abstractmethod
    def to_row(self, entity: T) -> List[str]:
        """Serialize an entity."""
        pass
    
    @abstractmethod
    def from_row(self, row: List[str]) -> Optional[T]:
        """Deserialize a row, or return None when the row is unusable."""
        pass


class AuditSink(ABC):
    """Append-only sink for state-changing actions."""
    
    @abstractmethod
    def record(self, message: str, **details: Any) -> None:
        """Append an entry. Must never raise."""
        pass
