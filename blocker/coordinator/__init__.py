"""Coordinator protocol: typed messages and the link boundary.

The concrete Steam transport lives in ``steam_link`` and is only imported by
the serve entry point, so the rest of the service runs without it.
"""
