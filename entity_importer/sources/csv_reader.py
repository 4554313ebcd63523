"""Forward-only CSV record reader."""

import csv
import logging
from typing import Any, Dict, List, Optional, Union

from ..errors import FileUnreadable

logger = logging.getLogger(__name__)


Record = Union[Dict[str, str], List[str]]


class CsvRecordIterator:
    """
    Lazy, forward-only iterator over the records of a CSV file.

    Supports:
    - Blank line skipping
    - Header rows (trimmed) turned into record keys
    - Headerless files, yielding plain lists
    """

    def __init__(
        self,
        path: str,
        has_header: bool = False,
        delimiter: str = ",",
        quotechar: str = '"',
        escapechar: Optional[str] = None,
        encoding: str = "utf-8-sig"
    ):
        """
        Initialize the reader.

        Args:
            path: CSV file path
            has_header: Whether the first non-blank row names the columns
            delimiter: Field delimiter
            quotechar: Field enclosure character
            escapechar: Escape character, None to rely on doubled quotes
            encoding: File encoding
        """
        self.path = path
        self.has_header = has_header
        self.delimiter = delimiter
        self.quotechar = quotechar
        self.escapechar = escapechar or None
        self.encoding = encoding
        self.line_number = 0
        self._handle = None
        self._reader = None
        self._header: Optional[List[str]] = None

    def _open(self):
        try:
            handle = open(self.path, "r", encoding=self.encoding, newline="")
        except OSError as e:
            raise FileUnreadable(f"Unable to open CSV file {self.path}: {e}", offending_id=self.path) from e
        reader = csv.reader(
            handle,
            delimiter=self.delimiter,
            quotechar=self.quotechar,
            escapechar=self.escapechar,
        )
        return handle, reader

    def headers(self) -> List[str]:
        """Read the first non-blank row, trimmed, without moving the iterator."""
        handle, reader = self._open()
        with handle:
            try:
                for row in reader:
                    if row:
                        return [column.strip() for column in row]
            except (UnicodeDecodeError, OSError) as e:
                raise FileUnreadable(f"Unable to read CSV file {self.path}: {e}", offending_id=self.path) from e
        return []

    def __iter__(self) -> "CsvRecordIterator":
        return self

    def __next__(self) -> Record:
        if self._reader is None:
            if self._handle is not None:
                raise StopIteration
            self._handle, self._reader = self._open()

        while True:
            try:
                row = next(self._reader)
            except StopIteration:
                self.close()
                raise
            except (UnicodeDecodeError, OSError) as e:
                self.close()
                raise FileUnreadable(
                    f"Unable to read CSV file {self.path} after line {self.line_number}: {e}",
                    offending_id=self.path,
                ) from e

            self.line_number = self._reader.line_num
            if not row:
                continue

            if not self.has_header:
                return row

            if self._header is None:
                self._header = [column.strip() for column in row]
                continue

            return self._combine(row)

    def _combine(self, row: List[str]) -> Dict[str, Any]:
        if len(row) != len(self._header):
            logger.warning(
                f"{self.path}:{self.line_number} has {len(row)} fields, header has {len(self._header)}"
            )
        return dict(zip(self._header, row))

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()
        self._reader = None

    def __enter__(self) -> "CsvRecordIterator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
