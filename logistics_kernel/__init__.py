"""
Logistics Kernel

Shared core of the Business and Express back office:
- Decimal-only money and currency values
- Status workflows for waves, journeys and shipments
- Typed errors and structured logging
"""

__version__ = "0.1.0"
