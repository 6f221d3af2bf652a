"""
Endpoint subpackage for API v1.

Each module in this package defines an APIRouter for a specific
domain (service requests, the service catalog, audit logs).  The
routers are aggregated in ``router.py`` at the package level and then
included in the main application.
"""
