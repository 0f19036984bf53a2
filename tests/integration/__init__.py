"""
Integration tests.

These tests exercise the engine against a real cache directory with the
wall clock:
- Expiry and sweeping with real time passing
- Scheduled cleanup
- Persistence across engine instances
- Concurrent readers, writers and observers

They sleep for real and run slower than unit tests.
"""
