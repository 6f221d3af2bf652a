"""
Client profile endpoints for API v1.

``GET /profile`` returns the caller's saved profile and ``PUT
/profile`` validates and saves it.  Validation failures answer 400
with ``fieldErrors`` keyed by the camelCase field names.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from accounting_portal_api.app.core.security import get_current_user
from accounting_portal_api.app.schemas.profile import ProfileRead
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.profile_service import ProfileService
from accounting_portal_api.app.services.request_service import InvalidPayloadError, SubmissionError


router = APIRouter()


@router.get("", response_model=ProfileRead, summary="Get my profile")
async def get_my_profile(current_user: UserContext = Depends(get_current_user)) -> ProfileRead:
    profile = await ProfileService.get_profile(current_user)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("", response_model=ProfileRead, summary="Save my profile")
async def update_my_profile(
    body: Any = Body(default=None),
    current_user: UserContext = Depends(get_current_user),
) -> ProfileRead:
    """Save the caller's profile and email the details to staff.

    Besides the profile fields the body may carry ``taxFileNumber``,
    ``otherDetails``, ``idDocuments``, ``otherDocuments`` and
    ``declaration``; these are forwarded to staff only.
    """
    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing profile data")
    try:
        return await ProfileService.update_profile(current_user, body)
    except InvalidPayloadError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "fieldErrors": e.field_errors},
        )
    except SubmissionError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
