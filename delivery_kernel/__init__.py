"""
Delivery Kernel

Shared foundation for the delivery reconciliation engine:
- Structured JSON logging with session-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Immutable order and issue DTOs
- SQLAlchemy declarative base and session scope for the order store
"""

__version__ = "0.1.0"
