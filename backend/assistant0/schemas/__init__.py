"""Pydantic Schemas - request/response validation for the chat endpoint.

Invariants:
    - Schemas validate at system boundary (chat request body)
"""
