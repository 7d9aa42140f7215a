"""
MedTracker backend.

This package provides the medication tracking service including:
- Medication records for prescription and non-prescription products
- Dose, refill and restock transactions with an intake log
- Derived supply metrics and adherence goal tracking
- Quick actions and read-only snapshots for widgets and shortcuts
"""
