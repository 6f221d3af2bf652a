"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  API handlers
call these services and translate their exceptions into HTTP errors,
so the same logic can be reused by other entry points.
"""
