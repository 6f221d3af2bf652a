"""
Service catalog endpoints for API v1.

Lists the service types a client can request, with the fields each one
accepts, which of them are required and the labels of its form
buttons.  Clients use this to render forms and to validate input
before submitting.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from accounting_portal_api.app.schemas.request import ServiceTypeRead
from accounting_portal_api.app.services.catalog import SERVICE_TYPES, get_service_type


router = APIRouter()


@router.get("/", response_model=List[ServiceTypeRead], summary="List service types")
async def list_service_types() -> List[ServiceTypeRead]:
    """Return every service type in catalog order."""
    return [config.to_schema() for config in SERVICE_TYPES.values()]


@router.get("/{service_type}", response_model=ServiceTypeRead, summary="Get a service type")
async def get_service_type_endpoint(service_type: str) -> ServiceTypeRead:
    """Return a single service type.  Unknown slugs answer 404."""
    try:
        return get_service_type(service_type).to_schema()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
