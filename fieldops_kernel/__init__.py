"""
FieldOps Kernel

Tenant-scoped persistence and domain primitives for the FieldOps ledger:
- Company-owned records (missions, revenues, payments, expenses)
- Decimal-only money with explicit rounding
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
