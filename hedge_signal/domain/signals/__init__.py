"""
Signals bounded context: domain layer.

This module contains all domain logic for trading signals:
- Market and portfolio snapshots
- Risk policy lookup
- Rule-based fallback decision table
- Payment proof validation
"""
