"""
Boundary layer: adapters to external systems (relational store).
"""
