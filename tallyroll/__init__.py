"""
tallyroll - Source Package

A running-total adding machine: every addition and subtraction lands on a
ledger "tape" as its own entry, and any entry can be edited or deleted later
with all downstream totals re-derived.

DESIGN PRINCIPLES:
1. The ledger invariant holds after every mutation
2. Rejected input never leaves a half-applied change
3. Rendering is injected, never global
4. Every ledger mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "tallyroll Team"
