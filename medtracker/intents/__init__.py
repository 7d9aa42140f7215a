"""
Quick actions and widget snapshots.

This module provides the entry points used by home-screen widgets and
automation shortcuts:
- Read-only medication snapshots combining stored fields and derived metrics
- Fire-and-forget take full dose, take half dose and refill actions
- Snapshot refresh requests after every quick action
"""
