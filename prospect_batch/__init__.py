"""
Batch prospect research job engine.

Durable, poll-driven work queue that drives AI prospect enrichment to
completion one item per request, using the relational store as the only
shared state.
"""

__version__ = "0.1.0"
