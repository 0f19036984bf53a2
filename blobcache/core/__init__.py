"""
Core package: configuration, logging, exceptions, domain models and protocols.
"""
