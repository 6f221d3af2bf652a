"""
API endpoints for reading and managing service requests.

Clients use these routes to list their requests, to look up their
request for one service type (together with how the form should be
displayed) and to read a single request.  Staff use the status route
to move a request through its lifecycle and attach notes for the
client.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from accounting_portal_api.app.core.security import get_current_user, require_roles
from accounting_portal_api.app.schemas.request import (
    ExistingRequestView,
    RequestStatus,
    RequestSummary,
    ServiceRequestRead,
    StatusUpdate,
)
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.catalog import get_service_type
from accounting_portal_api.app.services.request_service import (
    InvalidTransitionError,
    RequestService,
    status_to_display_state,
)


router = APIRouter()


@router.get("/", response_model=List[RequestSummary], summary="List my requests")
async def list_my_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Search term matched against service name and category"),
    current_user: UserContext = Depends(get_current_user),
) -> List[RequestSummary]:
    """Return the caller's requests across every service type, newest first.

    Supports optional filtering by status and a search term over the
    service name and category.
    """
    return await RequestService.list_user_requests(current_user, status=status_filter, search=q)


@router.get(
    "/{service_type}",
    response_model=ExistingRequestView,
    response_model_exclude_none=True,
    summary="Get my request for a service type",
)
async def get_existing_request(
    service_type: str = Path(..., description="Service type slug"),
    current_user: UserContext = Depends(get_current_user),
) -> ExistingRequestView:
    """Look up the caller's request for ``service_type``.

    Always answers 200 for a known service type.  When the lookup
    fails the response has ``exists: false`` and an ``error`` warning;
    the form stays usable.  ``display`` tells the client whether the
    form may be submitted and which button label to show.
    """
    try:
        config = get_service_type(service_type)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    existing = await RequestService.check_existing(current_user, service_type)
    current_status = existing.data.status if existing.data else None
    return ExistingRequestView(
        **existing.model_dump(),
        display=status_to_display_state(current_status, config.display_labels),
    )


@router.get(
    "/{service_type}/{request_id}",
    response_model=ServiceRequestRead,
    summary="Get a request",
)
async def get_request(
    service_type: str = Path(..., description="Service type slug"),
    request_id: str = Path(..., description="ID of the request"),
    current_user: UserContext = Depends(get_current_user),
) -> ServiceRequestRead:
    """Retrieve a single request.

    Clients may only read their own requests; staff may read any.
    Returns 404 if the service type or request does not exist.
    """
    try:
        return await RequestService.get_request(current_user, service_type, request_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.put(
    "/{service_type}/{request_id}/status",
    response_model=ServiceRequestRead,
    summary="Change request status",
)
async def update_request_status(
    update: StatusUpdate,
    service_type: str = Path(..., description="Service type slug"),
    request_id: str = Path(..., description="ID of the request"),
    current_user: UserContext = Depends(require_roles("staff")),
) -> ServiceRequestRead:
    """Move a request to a new status, optionally with a note.

    Only staff may change statuses.  Allowed moves are from
    ``pending`` to ``in-progress``, ``completed`` or ``rejected``, and
    from ``in-progress`` to ``completed`` or ``rejected``; anything
    else answers 409.
    """
    try:
        return await RequestService.update_status(current_user, service_type, request_id, update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
