"""Infrastructure Layer — database, outbound HTTP clients, and logging.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility)
"""
