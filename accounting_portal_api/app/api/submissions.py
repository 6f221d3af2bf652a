"""
Submission endpoints, one per service type.

``POST /api/<service-type>`` accepts a body of the form::

    {"paymentPlanData": {"planType": "fortnightly", "amount": 500,
                         "agreeToDeclaration": true, "userId": "u1"}}

where the wrapper key is the service type's ``body_key`` from the
catalog.  Every response has the shape ``{success, message?, id?}``;
validation failures additionally carry ``fieldErrors``.  Only POST is
supported; other methods answer 405.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, status
from fastapi.responses import JSONResponse

from accounting_portal_api.app.core.security import get_current_user
from accounting_portal_api.app.schemas.request import SubmitResult
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.catalog import get_service_type
from accounting_portal_api.app.services.request_service import (
    InvalidPayloadError,
    RequestLockedError,
    RequestService,
    SubmissionError,
)


logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str, field_errors: Optional[Dict[str, str]] = None) -> JSONResponse:
    result = SubmitResult(success=False, message=message, field_errors=field_errors)
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(by_alias=True, exclude_none=True),
    )


@router.post(
    "/{service_type}",
    response_model=SubmitResult,
    response_model_exclude_none=True,
    summary="Submit or resubmit a service request",
)
async def submit_service_request(
    service_type: str = Path(..., description="Service type slug, e.g. payment-plan"),
    body: Any = Body(default=None),
    current_user: UserContext = Depends(get_current_user),
):
    """Submit the caller's request for ``service_type``.

    The request is stored as ``pending`` and staff are notified by
    email.  A ``pending`` or ``rejected`` request is overwritten; a
    request already ``in-progress`` or ``completed`` is refused with
    409.  The ``userId`` inside the payload must be the authenticated
    user.
    """
    try:
        config = get_service_type(service_type)
    except ValueError as e:
        return _failure(status.HTTP_404_NOT_FOUND, str(e))

    data = body.get(config.body_key) if isinstance(body, dict) else None
    if not isinstance(data, dict) or not data.get("userId"):
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            f"Missing {config.label.lower()} data or user ID",
        )
    if str(data["userId"]) != current_user.user_id:
        return _failure(status.HTTP_403_FORBIDDEN, "User ID does not match the authenticated user")

    payload = {key: value for key, value in data.items() if key != "userId"}
    try:
        return await RequestService.submit(current_user, service_type, payload)
    except InvalidPayloadError as e:
        return _failure(status.HTTP_400_BAD_REQUEST, str(e), e.field_errors)
    except RequestLockedError as e:
        return _failure(status.HTTP_409_CONFLICT, str(e))
    except SubmissionError as e:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception:
        logger.exception("Unexpected error submitting %s request", service_type)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@router.api_route(
    "/{service_type}",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def submission_method_not_allowed(service_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"success": False, "message": "Method not allowed"},
        headers={"Allow": "POST"},
    )
