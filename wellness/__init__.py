"""Core domain logic for the single-patient wellness tracker.

This package contains the domain models, the side-effect resolution and
aggregation engine, and the client/server state synchronization services.
"""
