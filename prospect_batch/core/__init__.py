"""
Core domain layer.

Pure policy (retry, staleness, error classification, prospect
normalization), execution strategies, and the research pipeline contract.
"""
