"""
Hedge Signal: paid AI trading signals for a stable/hedge-asset vault.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - signals: Market snapshot, risk policy, recommendation engine,
      signal cache, and the micropayment gate in front of it.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (model API, ledger, RPC, stores) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
