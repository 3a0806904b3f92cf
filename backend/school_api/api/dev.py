"""
Development-only data endpoints. Hygraph is managed through its CMS, so seeding is not implemented;
the router is not mounted in production and refuses there regardless.
"""
from fastapi import APIRouter

from school_api.api.responses import send_error, send_forbidden
from school_api.config import settings

router = APIRouter(prefix="/api/dev", tags=["dev"])

NOT_SUPPORTED = "Seeding is not supported. Use Hygraph CMS for data management."


@router.post("/seed")
def seed():
    if settings.is_production:
        return send_forbidden("Forbidden in production")
    return send_error(NOT_SUPPORTED, status_code=501)


@router.post("/clear")
def clear():
    if settings.is_production:
        return send_forbidden("Forbidden in production")
    return send_error(NOT_SUPPORTED, status_code=501)
