"""Infrastructure Layer - external service clients and cross-cutting concerns.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping
    - Failures surface as Assistant0Error subclasses, never raw SDK exceptions

Design Decisions:
    - Resilient wrappers over raw clients (Gemini SDK, Auth0 token vault)
"""
