"""Rippler: command line client for the ledger WebSocket API."""

__version__ = "0.1.0"
