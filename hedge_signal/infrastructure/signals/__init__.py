"""
Infrastructure adapters for the signals bounded context.

Each adapter implements a domain port (ABC) and connects
to external systems: the recommendation model, the chain, memory.
"""
