"""
SAMBHAV - Source Package

A small single-tenant finance ledger: an admin logs in, records bills
(name, mobile number, amount, location, bill image) and reviews them
as a per-user ledger with running totals.

DESIGN PRINCIPLES:
1. The ledger view is derived, never stored
2. Fail early, fail visibly
3. Storage and blob backends are swappable
"""

__version__ = "1.0.0"
__author__ = "SAMBHAV Team"
