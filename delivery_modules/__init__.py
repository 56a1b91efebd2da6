"""
Delivery Modules.

Thin orchestration layers over the Delivery Kernel and Engines.

Modules:
- Procurement: purchase orders, delivery receipts, issue reporting and
  resolution, and the order-management gateway the reconciliation
  session talks to.

Actual reconciliation logic lives in the engines.
"""

from delivery_modules import procurement

__all__ = ["procurement"]
