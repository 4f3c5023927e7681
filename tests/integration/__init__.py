"""
Integration tests for docmigrate.

These tests exercise the SQLite store, the command line runner and
OpenTelemetry span export end to end. They need no external services.

Run integration tests:
    pytest tests/integration/ -v

Skip integration tests:
    pytest tests/ -v -m "not integration"
"""
