"""
In-process entity store for tests and offline use.
"""

import copy
import json
import logging
import math
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import pendulum

from ..domain.exceptions import EntityStoreError
from ..domain.time_utils import coerce_number

logger = logging.getLogger(__name__)

MOCK_DATA_FILE = Path(__file__).parent / "mock_entity_data.json"


def _sort_key(value: Any) -> Tuple[int, float, str]:
    """Numbers and numeric strings sort numerically, everything else as text after them."""
    number = coerce_number(value, math.nan)
    if math.isnan(number):
        return (1, 0.0, str(value))
    return (0, number, "")


class MemoryEntityStore:
    """
    Entity store that keeps records in memory.

    Offers the same async interface as ``HttpEntityStore``. Records are copied
    on the way in and out so callers can never mutate stored state directly.
    """

    def __init__(self, records: Mapping[str, List[Dict[str, Any]]] | None = None):
        """
        Initialize the store.

        Args:
            records: Optional mapping of entity name -> list of records
        """
        self._records: Dict[str, List[Dict[str, Any]]] = {
            entity: [dict(record) for record in items]
            for entity, items in (records or {}).items()
        }

    @classmethod
    def from_json(cls, data_file: Path = MOCK_DATA_FILE) -> "MemoryEntityStore":
        """
        Load seed records from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a mapping of entity -> records
        """
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Seed data in {data_file} must map entity names to record lists")

        return cls(data)

    async def list(
        self,
        entity: str,
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        return self._select(entity, {}, sort, limit)

    async def filter(
        self,
        entity: str,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        return self._select(entity, criteria, sort, limit)

    async def create(self, entity: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        record = dict(fields)
        record.setdefault("id", uuid.uuid4().hex)
        record.setdefault("created_date", pendulum.now("UTC").to_iso8601_string())

        self._records.setdefault(entity, []).append(record)
        logger.debug("Created %s %s", entity, record["id"])
        return copy.deepcopy(record)

    async def update(
        self,
        entity: str,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Dict[str, Any]:
        for record in self._records.get(entity, []):
            if record.get("id") == record_id:
                record.update(fields)
                return copy.deepcopy(record)

        raise EntityStoreError(f"{entity} {record_id} not found")

    def _select(
        self,
        entity: str,
        criteria: Mapping[str, Any],
        sort: str | None,
        limit: int | None,
    ) -> List[Dict[str, Any]]:
        matches = [
            record for record in self._records.get(entity, [])
            if all(record.get(key) == value for key, value in criteria.items())
        ]

        if sort:
            # "-field" sorts descending; missing values go last
            descending = sort.startswith("-")
            field = sort.lstrip("-")
            present = [r for r in matches if r.get(field) is not None]
            missing = [r for r in matches if r.get(field) is None]
            present.sort(key=lambda r: _sort_key(r[field]), reverse=descending)
            matches = present + missing

        if limit is not None:
            matches = matches[:limit]

        return copy.deepcopy(matches)
