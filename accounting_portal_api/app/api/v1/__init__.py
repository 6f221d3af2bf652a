"""
Version 1 of the API.

This subpackage bundles the read and back-office endpoints of the
Accounting Services Portal API.  As the API evolves, breaking changes
should be introduced in new version subpackages (e.g. ``v2``) to
preserve backwards compatibility.
"""
