"""
Service layer for business logic.

This package contains the service that orchestrates the settlement
ledger pipeline: upload validation, parsing, aggregation and export.
"""
