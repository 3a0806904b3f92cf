"""
Support tickets: submission, triage (assign / status / priority / category), resolution, stats.
"""
from dataclasses import dataclass, replace

from school_api.schemas.common import TicketCategory, TicketPriority, TicketStatus
from school_api.services.operations import SUPPORT_TICKET
from school_api.services.resource import HygraphResource, add_range, connect, search_clause, utc_now_iso
from school_api.services.validation import parse_datetime


@dataclass
class TicketFilters:
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    category: TicketCategory | None = None
    assigned_to_id: str | None = None
    user_id: str | None = None
    search: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    resolved_from: str | None = None
    resolved_to: str | None = None


def _status_timestamps(status: TicketStatus) -> dict:
    now = utc_now_iso()
    if status == TicketStatus.RESOLVED:
        return {"resolvedAt": now}
    if status == TicketStatus.CLOSED:
        return {"closedAt": now}
    return {}


class SupportTicketService(HygraphResource):
    model = SUPPORT_TICKET

    def build_where(self, filters: TicketFilters) -> dict:
        where: dict = {}
        if filters.status:
            where["supportTicketStatus"] = filters.status.value
        if filters.priority:
            where["priority"] = filters.priority.value
        if filters.category:
            where["category"] = filters.category.value
        if filters.assigned_to_id:
            where["assignedTo"] = {"id": filters.assigned_to_id}
        if filters.user_id:
            where["user"] = {"id": filters.user_id}
        clause = search_clause(filters.search, ("subject", "message", "name", "email"))
        if clause:
            where["OR"] = clause
        add_range(where, "dateCreated", filters.date_from, filters.date_to)
        add_range(where, "resolvedAt", filters.resolved_from, filters.resolved_to)
        return where

    def create(self, data: dict, user_id: str | None) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "name": data["name"].strip(),
            "email": data["email"].strip(),
            "subject": data["subject"].strip(),
            "message": data["message"],
            "supportTicketStatus": TicketStatus.OPEN.value,
            "priority": (data.get("priority") or TicketPriority.MEDIUM.value),
            "category": (data.get("category") or TicketCategory.GENERAL.value),
            "user": connect(user_id),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_ticket(self, ticket_id: str, data: dict) -> dict:
        allowed = ("subject", "message", "priority", "category", "resolution")
        changes = {k: data[k] for k in allowed if data.get(k) is not None}
        if data.get("status"):
            status = TicketStatus(data["status"])
            changes["supportTicketStatus"] = status.value
            changes.update(_status_timestamps(status))
        if data.get("assignedToId"):
            changes["assignedTo"] = connect(data["assignedToId"])
        changes["dateUpdated"] = utc_now_iso()
        return self.update(ticket_id, changes)

    def assign(self, ticket_id: str, assignee_id: str) -> dict:
        return self.update(ticket_id, {
            "assignedTo": connect(assignee_id),
            "supportTicketStatus": TicketStatus.IN_PROGRESS.value,
            "dateUpdated": utc_now_iso(),
        })

    def change_status(self, ticket_id: str, status: TicketStatus) -> dict:
        return self.update(ticket_id, {"supportTicketStatus": status.value, **_status_timestamps(status), "dateUpdated": utc_now_iso()})

    def resolve(self, ticket_id: str, resolution: str) -> dict:
        return self.update(ticket_id, {
            "supportTicketStatus": TicketStatus.RESOLVED.value,
            "resolution": resolution,
            "resolvedAt": utc_now_iso(),
            "dateUpdated": utc_now_iso(),
        })

    def close(self, ticket_id: str) -> dict:
        return self.change_status(ticket_id, TicketStatus.CLOSED)

    def change_priority(self, ticket_id: str, priority: TicketPriority) -> dict:
        return self.update(ticket_id, {"priority": priority.value, "dateUpdated": utc_now_iso()})

    def change_category(self, ticket_id: str, category: TicketCategory) -> dict:
        return self.update(ticket_id, {"category": category.value, "dateUpdated": utc_now_iso()})

    def open_tickets(self, limit: int = 50) -> list[dict]:
        return self.list(limit, 0, TicketFilters(status=TicketStatus.OPEN))

    def urgent(self, limit: int = 50) -> list[dict]:
        return self.list(limit, 0, TicketFilters(priority=TicketPriority.URGENT))

    def search(self, term: str, limit: int = 50) -> list[dict]:
        return self.list(limit, 0, TicketFilters(search=term))

    def _stats(self, base: TicketFilters) -> dict:
        by_status = {s.value: self.count(replace(base, status=s)) for s in TicketStatus}
        resolved = list(self.iter_all(replace(base, status=TicketStatus.RESOLVED)))
        hours = []
        for t in resolved:
            opened, done = parse_datetime(t.get("dateCreated")), parse_datetime(t.get("resolvedAt"))
            if opened and done:
                hours.append((done - opened).total_seconds() / 3600)
        return {
            "totalTickets": self.count(base),
            "openTickets": by_status[TicketStatus.OPEN.value],
            "inProgressTickets": by_status[TicketStatus.IN_PROGRESS.value],
            "resolvedTickets": by_status[TicketStatus.RESOLVED.value],
            "closedTickets": by_status[TicketStatus.CLOSED.value],
            "averageResolutionTime": round(sum(hours) / len(hours), 2) if hours else 0,
            "ticketsByPriority": {p.value: self.count(replace(base, priority=p)) for p in TicketPriority},
            "ticketsByCategory": {c.value: self.count(replace(base, category=c)) for c in TicketCategory},
            "ticketsByStatus": by_status,
        }

    def get_stats(self) -> dict:
        return self._stats(TicketFilters())

    def get_agent_stats(self, agent_id: str) -> dict:
        return self._stats(TicketFilters(assigned_to_id=agent_id))
