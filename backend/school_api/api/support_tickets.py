"""
Support tickets API: users file and follow their own tickets; admins triage, assign and resolve.
"""
from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    fails_with,
    get_current_user,
    get_pagination,
    get_support_ticket_service,
    get_user_service,
    require_admin,
    require_fields,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest, Forbidden, NotFound
from school_api.schemas.auth import CurrentUser
from school_api.schemas.common import TicketCategory, TicketPriority, TicketStatus, one_of
from school_api.schemas.support import (
    AssignRequest,
    CategoryRequest,
    PriorityRequest,
    ResolveRequest,
    StatusRequest,
    TicketRequest,
    TicketUpdateRequest,
)
from school_api.services.authz import is_admin, owner_id_of
from school_api.services.support_tickets import SupportTicketService, TicketFilters
from school_api.services.users import UserService
from school_api.services.validation import Pagination, is_valid_email

router = APIRouter(prefix="/api/support-tickets", tags=["support-tickets"])


def _parse_choice(enum_cls, value: str | None, label: str):
    """Enum member for value (None passes through); 400 naming the allowed values otherwise."""
    if value is None:
        return None
    parsed = enum_cls.parse(value)
    if parsed is None:
        raise BadRequest(f"Invalid {label}. Must be {one_of(enum_cls)}")
    return parsed


def _ticket(tickets: SupportTicketService, ticket_id: str) -> dict:
    return tickets.require(ticket_id, "Support ticket not found")


@router.get("/health")
def support_tickets_health():
    return send_success("Service is healthy")


@router.get("/my-tickets")
@fails_with("Failed to retrieve your support tickets")
def my_tickets(
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(get_current_user),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not user.hygraph_id:
        return send_paginated("Your support tickets retrieved successfully", [], page.page, page.limit, 0)
    filters = TicketFilters(user_id=user.hygraph_id)
    return send_paginated(
        "Your support tickets retrieved successfully",
        tickets.list(page.limit, page.offset, filters),
        page.page, page.limit, tickets.count(filters),
    )


@router.post("")
@fails_with("Failed to create support ticket")
def create_ticket(
    data: TicketRequest,
    user: CurrentUser = Depends(get_current_user),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    payload = data.model_dump()
    require_fields(payload, ("name", "email", "subject", "message"))
    if not is_valid_email(data.email.strip()):
        raise BadRequest("Invalid email format")
    priority = _parse_choice(TicketPriority, data.priority, "priority")
    category = _parse_choice(TicketCategory, data.category, "category")
    payload["priority"] = priority.value if priority else None
    payload["category"] = category.value if category else None
    return send_created("Support ticket created successfully", tickets.create(payload, user.hygraph_id))


@router.get("/open")
@fails_with("Failed to retrieve open support tickets")
def open_tickets(_: CurrentUser = Depends(require_admin), tickets: SupportTicketService = Depends(get_support_ticket_service)):
    return send_success("Open support tickets retrieved successfully", tickets.open_tickets())


@router.get("/urgent")
@fails_with("Failed to retrieve urgent support tickets")
def urgent_tickets(_: CurrentUser = Depends(require_admin), tickets: SupportTicketService = Depends(get_support_ticket_service)):
    return send_success("Urgent support tickets retrieved successfully", tickets.urgent())


@router.get("/search")
@fails_with("Failed to search support tickets")
def search_tickets(
    searchTerm: str | None = Query(None),
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not (searchTerm or "").strip():
        raise BadRequest("Search term is required")
    return send_success("Support tickets search results retrieved successfully", tickets.search(searchTerm.strip()))


@router.get("/stats/overview")
@fails_with("Failed to retrieve support ticket statistics")
def ticket_stats(_: CurrentUser = Depends(require_admin), tickets: SupportTicketService = Depends(get_support_ticket_service)):
    return send_success("Support ticket statistics retrieved successfully", tickets.get_stats())


@router.get("/stats/agent")
@fails_with("Failed to retrieve agent support ticket statistics")
def agent_stats(
    agentId: str | None = Query(None),
    user: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    """Defaults to the calling admin's own assignments."""
    stats = tickets.get_agent_stats(agentId or user.id)
    return send_success("Agent support ticket statistics retrieved successfully", stats)


@router.get("")
@fails_with("Failed to retrieve support tickets")
def list_tickets(
    status: str | None = Query(None),
    priority: str | None = Query(None),
    category: str | None = Query(None),
    assignedToId: str | None = Query(None),
    userId: str | None = Query(None),
    search: str | None = Query(None),
    dateFrom: str | None = Query(None),
    dateTo: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    filters = TicketFilters(
        status=_parse_choice(TicketStatus, status, "status"),
        priority=_parse_choice(TicketPriority, priority, "priority"),
        category=_parse_choice(TicketCategory, category, "category"),
        assigned_to_id=assignedToId,
        user_id=userId,
        search=search,
        date_from=dateFrom,
        date_to=dateTo,
    )
    return send_paginated(
        "Support tickets retrieved successfully",
        tickets.list(page.limit, page.offset, filters),
        page.page, page.limit, tickets.count(filters),
    )


@router.get("/{ticket_id}")
@fails_with("Failed to retrieve support ticket")
def get_ticket(
    ticket_id: str,
    user: CurrentUser = Depends(get_current_user),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    ticket = _ticket(tickets, ticket_id)
    if not is_admin(user.role) and owner_id_of(ticket, "user") != user.id:
        raise Forbidden("You can only view your own support tickets")
    return send_success("Support ticket retrieved successfully", ticket)


@router.put("/{ticket_id}")
@fails_with("Failed to update support ticket")
def update_ticket(
    ticket_id: str,
    data: TicketUpdateRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    changes = data.model_dump(exclude_none=True)
    for key, enum_cls in (("status", TicketStatus), ("priority", TicketPriority), ("category", TicketCategory)):
        if key in changes:
            changes[key] = _parse_choice(enum_cls, changes[key], key).value
    _ticket(tickets, ticket_id)
    return send_success("Support ticket updated successfully", tickets.update_ticket(ticket_id, changes))


@router.patch("/{ticket_id}/assign")
@fails_with("Failed to assign support ticket")
def assign_ticket(
    ticket_id: str,
    data: AssignRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
    users: UserService = Depends(get_user_service),
):
    if not (data.assignedToId or "").strip():
        raise BadRequest("Assigned to ID is required")
    _ticket(tickets, ticket_id)
    if not users.get_by_id(data.assignedToId):
        raise NotFound("Assigned user not found")
    return send_success("Support ticket assigned successfully", tickets.assign(ticket_id, data.assignedToId))


@router.patch("/{ticket_id}/status")
@fails_with("Failed to change support ticket status")
def change_status(
    ticket_id: str,
    data: StatusRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not data.status:
        raise BadRequest("Status is required")
    status = _parse_choice(TicketStatus, data.status, "status")
    _ticket(tickets, ticket_id)
    message = f"Support ticket status changed to {status.value} successfully"
    return send_success(message, tickets.change_status(ticket_id, status))


@router.patch("/{ticket_id}/resolve")
@fails_with("Failed to resolve support ticket")
def resolve_ticket(
    ticket_id: str,
    data: ResolveRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not (data.resolution or "").strip():
        raise BadRequest("Resolution is required")
    _ticket(tickets, ticket_id)
    return send_success("Support ticket resolved successfully", tickets.resolve(ticket_id, data.resolution.strip()))


@router.patch("/{ticket_id}/close")
@fails_with("Failed to close support ticket")
def close_ticket(
    ticket_id: str,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    _ticket(tickets, ticket_id)
    return send_success("Support ticket closed successfully", tickets.close(ticket_id))


@router.patch("/{ticket_id}/priority")
@fails_with("Failed to change support ticket priority")
def change_priority(
    ticket_id: str,
    data: PriorityRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not data.priority:
        raise BadRequest("Priority is required")
    priority = _parse_choice(TicketPriority, data.priority, "priority")
    _ticket(tickets, ticket_id)
    message = f"Support ticket priority changed to {priority.value} successfully"
    return send_success(message, tickets.change_priority(ticket_id, priority))


@router.patch("/{ticket_id}/category")
@fails_with("Failed to change support ticket category")
def change_category(
    ticket_id: str,
    data: CategoryRequest,
    _: CurrentUser = Depends(require_admin),
    tickets: SupportTicketService = Depends(get_support_ticket_service),
):
    if not data.category:
        raise BadRequest("Category is required")
    category = _parse_choice(TicketCategory, data.category, "category")
    _ticket(tickets, ticket_id)
    message = f"Support ticket category changed to {category.value} successfully"
    return send_success(message, tickets.change_category(ticket_id, category))
