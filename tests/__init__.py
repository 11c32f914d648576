"""
Content Store Test Suite.

This package contains:
- unit/: Unit tests (state machine, snapshot store, configuration)
- integration/: Integration tests (seeded store, repositories, scheduler loop, CLI)
"""
