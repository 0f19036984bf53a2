"""
Admin API package.
"""
