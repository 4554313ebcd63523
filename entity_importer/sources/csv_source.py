"""CSV import source."""

import csv
import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

from ..errors import FileUnreadable, FileUnwritable
from ..storage.file_store import FileStore, StoredFile
from .base import ImportSource
from .csv_reader import CsvRecordIterator

logger = logging.getLogger(__name__)


MERGE_FILE_PREFIX = "ENTITY_IMPORTER_"


def merge_csv_files(
    files: List[StoredFile],
    filename: str,
    has_header: bool,
    file_store: FileStore,
    delimiter: str = ",",
    quotechar: str = '"'
) -> str:
    """
    Concatenate uploaded CSV files into one file.

    The first file's header is written once. With a header, every later
    file's first line is compared field by field against it: a match drops
    the repeated header line, a mismatch skips the rest of that file, which
    then keeps its upload and gets no separator. Every consumed file is
    followed by a blank separator line and, once all files merged, deleted
    through the file store. A failure leaves every upload in place.

    Args:
        files: Stored files in upload order
        filename: Target file path, truncated before writing
        has_header: Whether each file starts with a header line
        file_store: File registry that owns the uploads
        delimiter: Field delimiter used to split header lines
        quotechar: Field enclosure used to split header lines

    Returns:
        The target file path

    Raises:
        FileUnwritable: If the target cannot be opened
        FileUnreadable: If a source file cannot be opened or decoded
    """
    try:
        target = open(filename, "w", encoding="utf-8", newline="")
    except OSError as e:
        raise FileUnwritable(f"Unable to open merge file {filename}: {e}", offending_id=filename) from e

    canonical_header: Optional[List[str]] = None
    consumed: List[StoredFile] = []

    with target:
        for stored in files:
            path = file_store.resolve_path(stored)
            try:
                handle = open(path, "r", encoding="utf-8-sig", newline="")
            except OSError as e:
                raise FileUnreadable(f"Unable to open {stored.filename}: {e}", offending_id=stored.id) from e

            with handle:
                mismatched = False
                try:
                    for index, line in enumerate(handle):
                        if has_header and index == 0:
                            header = _split_header(line, delimiter, quotechar)
                            if canonical_header is None:
                                canonical_header = header
                                target.write(line)
                                continue
                            if header != canonical_header:
                                logger.warning(
                                    f"Skipping {stored.filename}: header {header} does not match {canonical_header}"
                                )
                                mismatched = True
                                break
                            continue
                        target.write(line)
                except UnicodeDecodeError as e:
                    raise FileUnreadable(f"Unable to decode {stored.filename}: {e}", offending_id=stored.id) from e
                except OSError as e:
                    raise FileUnreadable(f"Unable to read {stored.filename}: {e}", offending_id=stored.id) from e

            if mismatched:
                continue

            consumed.append(stored)
            target.write("\n")

    # Uploads are only released once every file merged
    for stored in consumed:
        file_store.delete(stored.id)

    logger.info(f"Merged {len(files)} file(s) into {filename}")
    return filename


def _split_header(line: str, delimiter: str, quotechar: str) -> List[str]:
    rows = list(csv.reader([line.rstrip("\r\n")], delimiter=delimiter, quotechar=quotechar))
    return [column.strip() for column in rows[0]] if rows else []


class CsvImportSource(ImportSource):
    """
    Import source reading uploaded CSV files.

    Supports:
    - One or several uploads merged into a single temporary file
    - Optional header row naming the fields
    - Unique identifiers taken from the profile's field mapping options
    """

    plugin_id = "entity_import_csv"
    label = "CSV"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._import_file: Optional[CsvRecordIterator] = None

    def default_configuration(self) -> Dict[str, Any]:
        return {
            "file_id": [],
            "has_header": False,
            "upload_multiple": False,
        }

    def has_required_configs(self) -> bool:
        return bool(self.configuration.get("file_id"))

    def fields(self) -> List[str]:
        return self.get_import_file_object().headers()

    def get_ids(self) -> Dict[str, Dict[str, Any]]:
        """Build record keys from the profile's unique identifiers."""
        profile = self.load_importer()
        ids: Dict[str, Dict[str, Any]] = {}

        options = self.store.load_mapping_options(profile.id)
        identifiers = options.unique_identifiers if options is not None else []

        for info in identifiers:
            name = info.get("identifier_name")
            identifier_type = info.get("identifier_type")
            if not name or not identifier_type:
                continue

            ids[name] = {"type": identifier_type}

            raw_settings = info.get("identifier_settings")
            if not raw_settings:
                continue
            try:
                settings = json.loads(raw_settings) if isinstance(raw_settings, str) else raw_settings
            except json.JSONDecodeError:
                logger.warning(f"Ignoring invalid identifier settings for '{name}' on importer {profile.id}")
                continue
            if isinstance(settings, dict):
                for key, value in settings.items():
                    ids[name].setdefault(key, value)

        return ids

    def initialize_iterator(self) -> CsvRecordIterator:
        return self.get_import_file_object()

    def get_import_file_object(self) -> CsvRecordIterator:
        """Merge the uploads on first use and open the merged file."""
        if self._import_file is None:
            configuration = self.configuration
            has_header = bool(configuration.get("has_header"))
            path = self.get_merge_filename()
            try:
                merge_csv_files(
                    self.load_files(configuration.get("file_id")),
                    path,
                    has_header,
                    self.file_store,
                    delimiter=self.settings.csv_delimiter,
                    quotechar=self.settings.csv_enclosure,
                )
            except Exception:
                os.remove(path)
                raise
            self._import_file = CsvRecordIterator(
                path,
                has_header=has_header,
                delimiter=self.settings.csv_delimiter,
                quotechar=self.settings.csv_enclosure,
                escapechar=self.settings.csv_escape,
            )
        return self._import_file

    def load_files(self, file_ids: Any) -> List[StoredFile]:
        """Load stored files, skipping ids the file store does not know."""
        if file_ids is None:
            return []
        if not isinstance(file_ids, (list, tuple)):
            file_ids = [file_ids]

        files = []
        for file_id in file_ids:
            stored = self.file_store.load(file_id) if self.file_store is not None else None
            if stored is None:
                logger.warning(f"Skipping unknown file id: {file_id}")
                continue
            files.append(stored)
        return files

    def get_merge_filename(self) -> str:
        try:
            fd, path = tempfile.mkstemp(prefix=MERGE_FILE_PREFIX, suffix=".csv", dir=self.settings.temp_dir)
        except OSError as e:
            raise FileUnwritable(
                f"Unable to create merge file in {self.settings.temp_dir}: {e}",
                offending_id=self.settings.temp_dir,
            ) from e
        os.close(fd)
        return path

    def unlink_import_file(self) -> None:
        if self._import_file is None:
            return
        self._import_file.close()
        if os.path.exists(self._import_file.path):
            os.remove(self._import_file.path)
            logger.debug(f"Removed merged file {self._import_file.path}")
        self._import_file = None

    def __str__(self) -> str:
        return json.dumps(self.fields())
