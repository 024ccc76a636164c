"""
Test Suite

This module contains all tests for the document request backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures
    ├── helpers.py          # Fake clock, identity and push clients; audit helpers
    ├── unit/               # Utility, store, engine and service tests
    └── integration/        # API endpoint tests through the FastAPI app

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
