"""
Render Service - HTML to PDF rendering over HTTP.

Keeps a single headless Chromium process alive for the lifetime of the
service and renders each request inside its own isolated browser context.
"""

__version__ = "0.1.0"
