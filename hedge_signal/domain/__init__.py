"""
Signal rules with no IO.

Entities, the risk table, the fallback decision table and payment proof
checks live here, along with the ports adapters must implement.
"""
