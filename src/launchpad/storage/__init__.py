# src/launchpad/storage/__init__.py
"""
Off-ledger metadata storage.

The orchestrator only sees MetadataPublisher; the capability behind it is
either IPFS (Kubo HTTP API) or the in-process store used in dev mode.
"""
