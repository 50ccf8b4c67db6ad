"""Blocker domain services: target registry, session and timers.

This package holds the stateful core that HTTP routes and socket handlers
call into, keeping transport concerns out of the session logic.
"""
