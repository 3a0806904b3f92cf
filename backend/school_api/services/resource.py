"""
Shared Hygraph resource layer: list/count/get/create/update/delete plus guarded counter updates.
Subclasses set `model` and translate their filter dataclass into a `where` input.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterator

from school_api.errors import Conflict, NotFound
from school_api.services.hygraph import HygraphClient
from school_api.services.operations import Model

logger = logging.getLogger(__name__)

# Hygraph caps `first` at 100 per page by default.
MAX_PAGE_SIZE = 100
# Compare-and-swap attempts before a counter update gives up with 409.
CAS_MAX_ATTEMPTS = 5


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def connect(record_id: str | None) -> dict | None:
    """Relation input for a single reference."""
    return {"connect": {"id": record_id}} if record_id else None


def add_range(where: dict, field: str, lower: Any = None, upper: Any = None) -> None:
    """Narrow `where` with field_gte / field_lte when the bounds are present."""
    if lower is not None and lower != "":
        where[f"{field}_gte"] = lower
    if upper is not None and upper != "":
        where[f"{field}_lte"] = upper


def search_clause(term: str | None, fields: tuple[str, ...]) -> list[dict] | None:
    """OR of field_contains for a free-text search term."""
    term = (term or "").strip()
    if not term:
        return None
    return [{f"{f}_contains": term} for f in fields]


def drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


class HygraphResource:
    model: Model

    def __init__(self, client: HygraphClient):
        self.client = client

    def build_where(self, filters: Any) -> dict:
        return {}

    def list(self, limit: int = 10, offset: int = 0, filters: Any = None, order_by: str | None = None) -> list[dict]:
        data = self.client.query(
            self.model.list_query,
            {
                "first": limit,
                "skip": offset,
                "where": self.build_where(filters) if filters is not None else {},
                "orderBy": order_by or self.model.default_order,
            },
        )
        return data.get(self.model.plural) or []

    def count(self, filters: Any = None) -> int:
        where = self.build_where(filters) if filters is not None else {}
        data = self.client.query(self.model.count_query, {"where": where})
        connection = data.get(f"{self.model.plural}Connection") or {}
        return int((connection.get("aggregate") or {}).get("count") or 0)

    def iter_all(self, filters: Any = None) -> Iterator[dict]:
        """Page through every matching record; used for stats that need field sums."""
        offset = 0
        while True:
            page = self.list(MAX_PAGE_SIZE, offset, filters)
            yield from page
            if len(page) < MAX_PAGE_SIZE:
                return
            offset += MAX_PAGE_SIZE

    def find_one(self, where: dict) -> dict | None:
        data = self.client.query(self.model.get_query, {"where": where})
        return data.get(self.model.singular)

    def get_by_id(self, record_id: str) -> dict | None:
        if not record_id:
            return None
        return self.find_one({"id": record_id})

    def require(self, record_id: str, message: str) -> dict:
        record = self.get_by_id(record_id)
        if not record:
            raise NotFound(message)
        return record

    def create_record(self, data: dict) -> dict:
        result = self.client.mutate(self.model.create_mutation, {"data": drop_none(data)})
        return result.get(f"create{self.model.name}") or {}

    def update(self, record_id: str, data: dict) -> dict:
        result = self.client.mutate(self.model.update_mutation, {"id": record_id, "data": drop_none(data)})
        updated = result.get(f"update{self.model.name}")
        if not updated:
            raise NotFound(f"{self.model.name} not found")
        return updated

    def delete(self, record_id: str) -> bool:
        result = self.client.mutate(self.model.delete_mutation, {"id": record_id})
        return bool(result.get(f"delete{self.model.name}"))

    def adjust_counter(self, record_id: str, field: str, delta: int) -> dict:
        """
        Add delta to an integer field without losing concurrent updates.
        Writes only if the stored value is still the one read (updateMany guarded on the old value);
        on a lost race the record is re-read and the write retried. Never goes below 0.
        """
        for attempt in range(1, CAS_MAX_ATTEMPTS + 1):
            record = self.get_by_id(record_id)
            if not record:
                raise NotFound(f"{self.model.name} not found")
            current = record.get(field)
            new_value = max(0, (current or 0) + delta)
            if current is not None and new_value == current:
                return record
            result = self.client.mutate(
                self.model.update_many_mutation,
                {"where": {"id": record_id, field: current}, "data": {field: new_value}},
            )
            applied = int((result.get(f"updateMany{self.model.name}s") or {}).get("count") or 0)
            if applied:
                return {**record, field: new_value}
            logger.info("%s %s: %s changed concurrently (attempt %s)", self.model.name, record_id, field, attempt)
        raise Conflict(f"Could not update {field}; please retry")
