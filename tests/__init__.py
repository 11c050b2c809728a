"""
Longevity League Test Suite
===========================

Test Organization
-----------------
- tests/unit/          : Fast unit tests against the in-memory store (no external dependencies)
- tests/integration/   : Integration tests with testcontainers (real PostgreSQL / Redis)
- tests/fakes.py       : In-memory store and seed helpers shared by the unit tests

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test scoring and badge logic
- Integration tests: Slower, test the SQL stores and Redis locks for real
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
