"""Services Layer - capability provisioning, agent loop, transcoding, request handling.

Invariants:
    - Tool dispatch uses explicit dict mapping (no auto-discovery)
    - Tool schemas live in define_*_tools.py, handlers in handle_*.py
"""
