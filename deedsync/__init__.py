"""
deedsync

Client-side synchronization and transaction orchestration for real-estate
deeds held on a distributed ledger.
"""

__version__ = "0.1.0"
