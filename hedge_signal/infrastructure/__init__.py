"""
Adapters for the domain ports: the model API, blockchain RPC,
market data, the ledger and key-value stores.
"""
