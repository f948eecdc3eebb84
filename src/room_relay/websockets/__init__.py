"""WebSocket transport for the room relay."""
