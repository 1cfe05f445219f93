"""Versioned rate ledger: data model, errors and the engine."""
