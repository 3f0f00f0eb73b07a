"""
Ledger Kernel

A double-entry ledger engine for small-business accounting:
- Balanced journal entries against a typed chart of accounts
- Running account balances derived from every posting
- Open-item tracking for receivables and payables
- Single-writer transactions on an embedded SQLite store
"""

__version__ = "0.1.0"
