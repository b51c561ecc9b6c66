"""
Use cases for releasing paid signals.

Orchestrates the payment gate, the signal cache and the recommendation
engine over domain ports.
"""
