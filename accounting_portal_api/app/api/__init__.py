"""
API package containing the HTTP routes.

``submissions`` holds the per-service submission endpoint mounted
under ``/api``.  Versioned routes live in subpackages such as ``v1``,
each exposing a top-level ``router`` which includes all of its
domain-specific endpoints.
"""
