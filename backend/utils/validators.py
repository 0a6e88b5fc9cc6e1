"""
Input validation utilities for the Storefront API.

Provides reusable validators for emails and list-endpoint sort parameters.
"""
import re

from fastapi import HTTPException

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def validate_email(email: str) -> str:
    """
    Normalize and validate an email address.

    Returns:
        The trimmed, lower-cased address

    Raises:
        ValueError if the address is malformed (surfaced by pydantic as 422)
    """
    if not email:
        raise ValueError("Email address is required")
    email = email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError(f"Invalid email address: {email}")
    return email


def validate_sort(sort_by: str, sort_order: str, allowed: tuple[str, ...]) -> tuple[str, str]:
    """
    Validate list sorting parameters against an allow-list of columns.

    Raises:
        HTTPException(400) for an unknown column or direction
    """
    if sort_by not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid sortBy '{sort_by}'. Allowed: {', '.join(allowed)}",
        )
    sort_order = (sort_order or "desc").lower()
    if sort_order not in ("asc", "desc"):
        raise HTTPException(status_code=400, detail="sortOrder must be 'asc' or 'desc'")
    return sort_by, sort_order
