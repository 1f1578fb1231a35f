"""
Core primitives shared across burnwatch: errors and the tier catalog.
"""
