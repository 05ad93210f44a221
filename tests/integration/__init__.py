"""
Integration tests for the analytics core.

These tests wire the real cache, scheduler, gateway and facade to
in-memory connectors and analytics modules.

Run with:
    pytest tests/integration/ -v -m integration
"""
