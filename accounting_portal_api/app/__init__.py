"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Business logic lives in ``services``, request and
response models in ``schemas`` and HTTP routes in ``api``.  The
per-service submission routes are mounted under ``/api`` and the
versioned read and back-office routes under ``/api/v1``.
"""

from .main import app  # noqa: F401
