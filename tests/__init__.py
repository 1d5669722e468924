"""
Test Suite

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures
    ├── fakes.py            # In-memory repositories and transport
    ├── unit/               # Engine, session and client-core tests
    └── integration/        # API tests (TestClient) and client-to-API tests

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""
