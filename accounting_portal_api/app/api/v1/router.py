"""
Top-level router for version 1 of the API.

This router aggregates the domain-specific routers (service catalog,
service requests, client profile, audit logs) under a unified prefix.
When new endpoints or domains are added, update this file to include
their routers.
"""

from fastapi import APIRouter

from .endpoints import audit, catalog, profile, service_requests


router = APIRouter()

router.include_router(catalog.router, prefix="/services", tags=["services"])
router.include_router(service_requests.router, prefix="/requests", tags=["requests"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
