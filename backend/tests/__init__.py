"""
Pytest suite for the Storefront backend.

Test categories:
- Unit tests: service layer against an in-memory SQLite session
- Integration tests: ORM models and constraints
- API tests: full FastAPI app over httpx ASGITransport
"""
