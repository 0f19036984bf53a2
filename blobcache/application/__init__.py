"""
Application package: cache factory and the FastAPI admin surface.
"""
