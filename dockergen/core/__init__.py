"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: API paths and fallback messages
- exceptions: Custom exception hierarchy
"""
