"""Storage infrastructure for the ledger."""
