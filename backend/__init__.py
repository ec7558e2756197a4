"""
Backend package for the QuickStor content service.

This package provides a FastAPI application over a flat JSON-file key/value
store, plus the proxy the admin panel uses to reach OpenAI-compatible
providers without running into CORS.
"""
