"""
Top-level package for the Accounting Services Portal API.

This file makes ``accounting_portal_api`` a Python package so that
modules within ``app`` can be imported using fully qualified names
like ``accounting_portal_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
