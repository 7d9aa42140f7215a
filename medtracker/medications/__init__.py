"""
Medication module for the MedTracker system.

This module provides the medication state and adherence engine including:
- Unit conversion to canonical milligrams
- Dose, refill and restock transactions with an append-only intake log
- Derived supply metrics
- Intake goal progress and adherence streaks
"""
