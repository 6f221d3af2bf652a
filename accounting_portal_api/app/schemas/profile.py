"""
Pydantic schemas for client profiles.

A profile holds the contact details staff need before they act on any
request.  It is stored as one document per user in the ``users``
collection.
"""

from typing import Optional

from .request import CamelModel


class ProfileRead(CamelModel):
    """A client's stored profile."""

    id: str
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    description: Optional[str] = None
    created_at: str
    updated_at: str
