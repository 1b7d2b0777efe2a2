"""Game domain services: auction rules, round state machine and timers.

This package contains the core game mechanics, imported by the session
manager and socket handlers, keeping transport concerns separated from the
rules themselves.
"""
