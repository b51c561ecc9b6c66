"""
Cross-cutting concerns shared by every layer.

Error-to-HTTP mapping, security headers, rate limiting and
logging setup live here; none of it knows about signals.
"""
