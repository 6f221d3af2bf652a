"""Accounting services portal API client.

This module wraps the portal's REST API for use by the web front end's
server side, scripts and back office tools.  It uses the ``requests``
library internally and never raises for HTTP failures: every call
returns a tuple ``(data, error)`` where ``error`` is ``None`` on success
or a dictionary with ``status_code``, ``message`` and, for validation
failures, ``field_errors``.

Two layers are provided:

* :class:`AccountingPortalAPI` - thin wrappers around the endpoints
  (catalog, existing request lookup, submission, request listing and
  staff status changes).
* :class:`ServiceRequestForm` - the controller behind one service form.
  It validates input locally before any network call, keeps at most one
  submission in flight and tells the caller how the form should be
  displayed for the current request status.

Authentication uses the bearer token issued by the identity provider;
pass it as ``api_key``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import requests

from accounting_portal_api.app.schemas.request import DisplayLabels, DisplayState
from accounting_portal_api.app.services.catalog import get_service_type
from accounting_portal_api.app.services.request_service import (
    RequestService,
    status_to_display_state,
)


logger = logging.getLogger(__name__)

ApiError = Dict[str, Any]


class AccountingPortalAPI:
    """Client for the accounting services portal API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL for the API, e.g. ``https://portal.example.com``.
            api_key: Optional bearer token.  If set, an ``Authorization``
                header with the value ``Bearer <api_key>`` is included in
                all requests.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Timeout in seconds for each HTTP call.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[ApiError]]:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, etc.).
            path: Path relative to :attr:`base_url` (e.g. ``/api/payment-plan``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)``. ``data`` contains the parsed JSON
            response on success and ``error`` is ``None``. On failure,
            ``data`` is ``None`` and ``error`` is a dictionary with keys
            ``status_code`` and ``message`` describing the issue.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            error: ApiError = {"status_code": status}
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                except ValueError:
                    message = exc.response.text
                else:
                    if isinstance(err_json, dict) and isinstance(err_json.get("detail"), dict):
                        # Structured HTTPException detail.
                        err_json = err_json["detail"]
                    if isinstance(err_json, dict):
                        message = err_json.get("message") or err_json.get("detail") or ""
                        if err_json.get("fieldErrors"):
                            error["field_errors"] = err_json["fieldErrors"]
                    if not message:
                        message = str(err_json)
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            error["message"] = message
            return None, error
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    def list_services(self) -> Tuple[List[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve the service catalog.

        Returns:
            A tuple ``(services, error)``. ``services`` is empty on failure.
        """
        data, error = self._request("GET", "/api/v1/services/")
        if error:
            return [], error
        return data if isinstance(data, list) else [], None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def check_existing(self, service_type: str) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Look up the caller's request for ``service_type``.

        Returns:
            A tuple ``(result, error)`` where ``result`` has the keys
            ``exists``, ``data``, ``error`` and ``display`` as returned
            by the API.
        """
        return self._request("GET", f"/api/v1/requests/{service_type}")

    def submit(
        self, service_type: str, user_id: str, payload: Dict[str, Any]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Submit or resubmit the caller's request for ``service_type``.

        Args:
            service_type: Service type slug, e.g. ``payment-plan``.
            user_id: Identity provider id of the caller.
            payload: Form fields of the service type.
        Returns:
            A tuple ``(result, error)``.  ``result`` is the API's
            ``{success, id, message}`` document.
        """
        config = get_service_type(service_type)
        body = {config.body_key: dict(payload, userId=user_id)}
        return self._request("POST", f"/api/{service_type}", json_body=body)

    def list_requests(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve the caller's requests across all service types."""
        params = {}
        if status:
            params["status"] = status
        if search:
            params["q"] = search
        data, error = self._request("GET", "/api/v1/requests/", params=params or None)
        if error:
            return [], error
        return data if isinstance(data, list) else [], None

    def get_request(
        self, service_type: str, request_id: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve a single request by id."""
        return self._request("GET", f"/api/v1/requests/{service_type}/{request_id}")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    def get_profile(self) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve the caller's profile.  A never-saved profile is a 404 error."""
        return self._request("GET", "/api/v1/profile")

    def update_profile(self, profile: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Save the caller's profile.

        Args:
            profile: camelCase profile fields, optionally with the intake
                extras (``taxFileNumber``, ``idDocuments`` ...) meant for staff.
        """
        return self._request("PUT", "/api/v1/profile", json_body=profile)

    def update_status(
        self, service_type: str, request_id: str, status: str, notes: Optional[str] = None
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Move a request to ``status``.  Requires a staff token."""
        body: Dict[str, Any] = {"status": status}
        if notes is not None:
            body["notes"] = notes
        return self._request(
            "PUT", f"/api/v1/requests/{service_type}/{request_id}/status", json_body=body
        )


class ServiceRequestForm:
    """Controller for one service form.

    Typical use::

        form = ServiceRequestForm(api, "payment-plan", user_id="u1")
        form.load()
        if form.display_state().action_enabled:
            result, error = form.submit({"planType": "fortnightly", ...})

    ``submit`` validates locally and makes no network call when the
    payload is invalid.  While one submission is in flight a second
    call is refused.
    """

    def __init__(self, api: AccountingPortalAPI, service_type: str, user_id: str) -> None:
        self.api = api
        self.config = get_service_type(service_type)
        self.user_id = user_id
        self.status: Optional[str] = None
        self.request: Optional[Dict[str, Any]] = None
        self.warning: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self._in_flight = threading.Lock()

    @property
    def labels(self) -> DisplayLabels:
        return self.config.display_labels

    @property
    def submitting(self) -> bool:
        return self._in_flight.locked()

    def load(self) -> Optional[Dict[str, Any]]:
        """Fetch the existing request and remember its status.

        A failed lookup is not fatal: ``warning`` is set and the form
        stays usable as if no request existed.
        """
        result, error = self.api.check_existing(self.config.slug)
        if error:
            self.request, self.status = None, None
            self.warning = error.get("message") or "Could not check for an existing request"
            return None
        result = result or {}
        self.warning = result.get("error")
        self.request = result.get("data") if result.get("exists") else None
        self.status = self.request.get("status") if self.request else None
        return self.request

    def display_state(self) -> DisplayState:
        """Return the call to action for the current status."""
        return status_to_display_state(self.status, self.labels, submitting=self.submitting)

    def validate(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Validate ``payload`` locally and keep the messages in ``field_errors``."""
        self.field_errors = RequestService.validate(payload, self.config.slug).field_errors
        return self.field_errors

    def submit(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Validate and submit ``payload``.

        Returns:
            A tuple ``(result, error)``.  Validation failures return
            ``status_code`` ``None`` with ``field_errors`` and do not
            touch the network.
        """
        if not self.display_state().action_enabled and not self.submitting:
            return None, {
                "status_code": None,
                "message": f"{self.config.label} request can no longer be changed",
            }
        if not self._in_flight.acquire(blocking=False):
            return None, {"status_code": None, "message": "A submission is already in progress"}
        try:
            field_errors = self.validate(payload)
            if field_errors:
                return None, {
                    "status_code": None,
                    "message": "Please correct the highlighted fields",
                    "field_errors": field_errors,
                }
            result, error = self.api.submit(self.config.slug, self.user_id, payload)
            if error:
                self.field_errors = error.get("field_errors") or {}
                return None, error
        finally:
            self._in_flight.release()
        # Re-read so the form reflects the stored record.
        self.load()
        return result, None
