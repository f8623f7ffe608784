"""
Cross-cutting infrastructure: logging, error types and retry policy.
"""
