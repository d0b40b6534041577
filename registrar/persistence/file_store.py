"""
CSV file storage for record collections.
"""

import csv
import os
import tempfile
import threading
from typing import Iterable, List

from ..core.exceptions import PersistenceError
from ..core.interfaces import RecordStore


class CsvFileStore(RecordStore):
    """Each collection is one CSV file under ``base_path``.

    Standard CSV quoting applies: a field holding a comma, quote or newline
    is wrapped in double quotes with inner quotes doubled. Writes replace the
    whole file through a temporary sibling, so readers never observe a
    half-written collection.
    """

    def __init__(self, base_path: str = "."):
        self._base_path = base_path
        self._lock = threading.RLock()
        self._ensure_directory_exists()

    @property
    def base_path(self) -> str:
        return self._base_path

    def _ensure_directory_exists(self) -> None:
        """Ensure the data directory exists."""
        try:
            os.makedirs(self._base_path, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create data directory {self._base_path}: {str(e)}")

    def get_path(self, name: str) -> str:
        """Get file path for a collection."""
        return os.path.join(self._base_path, name)

    def exists(self, name: str) -> bool:
        return os.path.exists(self.get_path(name))

    def read_rows(self, name: str) -> List[List[str]]:
        """Read all non-blank rows, fields stripped of surrounding whitespace."""
        with self._lock:
            path = self.get_path(name)
            if not os.path.exists(path):
                return []

            rows = []
            try:
                with open(path, "r", encoding="utf-8", newline="") as f:
                    for row in csv.reader(f):
                        fields = [field.strip() for field in row]
                        if not any(fields):
                            continue
                        rows.append(fields)
            except (OSError, UnicodeDecodeError, csv.Error) as e:
                raise PersistenceError(f"Failed to read {name}: {str(e)}")

            return rows

    def write_rows(self, name: str, rows: Iterable[List[str]]) -> int:
        """Overwrite a collection with ``rows``."""
        with self._lock:
            path = self.get_path(name)
            tmp_path = None
            count = 0
            try:
                fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self._base_path)
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    writer = csv.writer(f, lineterminator="\n")
                    for row in rows:
                        writer.writerow(row)
                        count += 1
                os.replace(tmp_path, path)
                tmp_path = None
            except (OSError, csv.Error) as e:
                raise PersistenceError(f"Failed to write {name}: {str(e)}")
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.remove(tmp_path)

            return count
