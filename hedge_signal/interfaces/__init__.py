"""
HTTP surface of the service.

Routers translate JSON bodies and payment headers into use-case
commands and shape the results back into camelCase responses.
"""
