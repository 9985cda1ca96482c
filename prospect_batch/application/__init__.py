"""
Application layer: use-case services and adapters to background infrastructure.
"""
