"""Core Layer - pure domain logic, no IO, no HTTP, no model SDK.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or client/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: provisioning rules,
      history filtering and the request state machine are testable without IO
"""
