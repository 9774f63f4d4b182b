"""
Tests for the storefront cart service.

Unit tests cover pricing and signatures; component tests drive the API
through FastAPI's TestClient against an in-memory database.
"""
