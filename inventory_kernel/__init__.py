"""
Inventory Kernel

A batch-based inventory costing core with:
- Discrete cost-bearing batches per product
- FIFO depletion with per-batch consumption detail
- Append-only movement ledger with cause-specific payloads
- Atomic units of work with product-level locking
"""

__version__ = "0.1.0"
