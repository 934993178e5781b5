"""
pytest suite for the ZAMS Mart backend.

Test categories:
- Unit tests: service layer against an in-memory SQLite session
- API tests: FastAPI app over httpx, same session via dependency override
- Integration tests: multi-step storefront and back-office flows
"""
