"""Chat Client - consumes the /api/chat SSE stream and gates input on errors.

Invariants:
    - error_state.py is pure (no IO); stream_consumer.py owns the HTTP exchange
"""
