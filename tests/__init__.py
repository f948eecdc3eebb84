"""
Test suite for the Room Relay system.

This package contains tests organized by type:
- Unit tests for individual components
- Integration tests against a real WebSocket server
"""
