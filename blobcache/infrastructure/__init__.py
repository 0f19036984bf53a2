"""
Infrastructure package: disk cache engine and cleanup scheduling.
"""
