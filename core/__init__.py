"""
Core processing modules for settlement ledger analysis.

This package contains:
- aggregation: Fold of classified transactions and report assembly
- classify: Transaction categories, marker predicates and posting rules
- config: Application configuration and settings
- exceptions: Custom exception classes
- exporters: Excel export of reports
- logger: Logging configuration
- normalize: Token coercion helpers
- parsing: Ledger tokenizer and record builder
- schema: Pydantic models for transactions, aggregates and reports
"""
