"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (ledger JSON-RPC, wallet
    session, filesystem preferences, and the in-memory ledger double).

Dependencies:
    ``ledger_rpc`` and ``http_client`` depend on ``requests``; the rest use the
    standard library and domain protocol definitions.

Call context:
    Imported by ``deedsync.app.controller`` for runtime wiring and by tests.
"""
