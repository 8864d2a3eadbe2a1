"""Services Layer — identity store, verification gate, stats aggregator, claim engine.

Invariants:
    - Services own transactions and locking; pure decisions live in core/
    - Routes talk to services through FaucetRuntime only
"""
