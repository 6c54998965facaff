# adapters/repository/json_file_test_lab_repository.py

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

from pydantic import TypeAdapter, ValidationError

from ...common.logger import LoggerFactory, LoggerType, LogLevel
from ...core.exceptions import StorageError
from ...domain.ports.test_lab_repository import TestLabRepositoryInterface
from ...schemas.auth import Auth
from ...schemas.collection import Collection
from ...schemas.environment import Environment
from ...schemas.flow import Flow
from ...schemas.test_suite import TestSuite
from ...schemas.validation import ValidationRule

COLLECTIONS_FILE = "collections.json"
FLOWS_FILE = "flows.json"
TEST_SUITES_FILE = "test_suites.json"
ENVIRONMENTS_FILE = "environments.json"
AUTHS_FILE = "auths.json"
VALIDATION_RULES_FILE = "validation_rules.json"


class JsonFileTestLabRepository(TestLabRepositoryInterface):
    """JSON file-based storage, one document per entity kind under ``data_dir``.

    A document is either a bare JSON array or an object holding the array
    under its kind (``{"test_suites": [...]}``). Records that fail to parse
    are logged and left out; an unreadable document loads as empty.

    Writes edit the stored records in place: records that fail to parse are
    kept as they are, and an unreadable document is never overwritten.
    """

    def __init__(self, data_dir: str = "data", verbose: bool = False):
        self.data_dir = Path(data_dir)
        self.logger = LoggerFactory.get_logger(
            name="repository.test_lab",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.DEBUG if verbose else LogLevel.INFO,
        )

    def _read_records(self, file_name: str, key: str) -> List[Any]:
        """Raw JSON records of a document, ``[]`` when the file is absent."""
        path = self.data_dir / file_name
        if not path.exists():
            self.logger.debug(f"{path} does not exist, nothing to load")
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to load {key} from {path}: {e}") from e

        records = data.get(key, []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise StorageError(f"Unexpected document shape in {path}")
        return records

    def _read(self, file_name: str, adapter: TypeAdapter, key: str) -> List[Any]:
        path = self.data_dir / file_name
        try:
            records = self._read_records(file_name, key)
        except StorageError as e:
            self.logger.error(str(e))
            return []

        loaded = []
        for index, record in enumerate(records):
            try:
                loaded.append(adapter.validate_python(record))
            except ValidationError as e:
                self.logger.warning(f"Skipping invalid record #{index} in {path}: {e}")
        self.logger.debug(f"Loaded {len(loaded)} {key} from {path}")
        return loaded

    def _records_for_update(self, file_name: str, key: str) -> List[Any]:
        try:
            return self._read_records(file_name, key)
        except StorageError as e:
            self.logger.error(f"Refusing to rewrite {file_name}: {e}")
            raise

    def _write(self, file_name: str, key: str, records: List[Any]) -> None:
        path = self.data_dir / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            key: records,
            "metadata": {
                "total_count": len(records),
                "last_updated": datetime.now(timezone.utc).isoformat(),
            },
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        self.logger.debug(f"Saved {len(records)} {key} to {path}")

    async def load_collections(self) -> List[Collection]:
        return self._read(COLLECTIONS_FILE, TypeAdapter(Collection), "collections")

    async def load_flows(self) -> List[Flow]:
        return self._read(FLOWS_FILE, TypeAdapter(Flow), "flows")

    async def load_test_suites(self) -> List[TestSuite]:
        return self._read(TEST_SUITES_FILE, TypeAdapter(TestSuite), "test_suites")

    async def load_environments(self) -> List[Environment]:
        return self._read(ENVIRONMENTS_FILE, TypeAdapter(Environment), "environments")

    async def load_auths(self) -> List[Auth]:
        return self._read(AUTHS_FILE, TypeAdapter(Auth), "auths")

    async def load_validation_rules(self) -> List[ValidationRule]:
        return self._read(
            VALIDATION_RULES_FILE, TypeAdapter(ValidationRule), "validation_rules"
        )

    async def save_test_suite(self, suite: TestSuite) -> TestSuite:
        records = self._records_for_update(TEST_SUITES_FILE, "test_suites")
        suite = suite.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        document = suite.model_dump(mode="json")

        for index, record in enumerate(records):
            if isinstance(record, dict) and record.get("id") == suite.id:
                records[index] = document
                break
        else:
            records.append(document)

        self._write(TEST_SUITES_FILE, "test_suites", records)
        self.logger.info(f"Saved test suite: {suite.id}")
        return suite

    async def delete_test_suite(self, suite_id: str) -> bool:
        records = self._records_for_update(TEST_SUITES_FILE, "test_suites")
        remaining = [
            r for r in records if not (isinstance(r, dict) and r.get("id") == suite_id)
        ]
        if len(remaining) == len(records):
            return False

        self._write(TEST_SUITES_FILE, "test_suites", remaining)
        self.logger.info(f"Deleted test suite: {suite_id}")
        return True
