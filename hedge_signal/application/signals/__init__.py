"""
Application layer for the signals bounded context.

Holds the recommendation engine, the signal cache, the payment gate,
and the use cases that chain them together.
"""
