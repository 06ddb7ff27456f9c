"""
Bookkeeping Kernel

A double-entry bookkeeping core with:
- Balance validation of journal entries
- Period gating of entry dates (fiscal years and monthly periods)
- Pending / approved / voided entry lifecycle
- Hierarchical ledger rollup and trial balance
"""

__version__ = "0.1.0"
