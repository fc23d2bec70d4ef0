"""Services Layer — async orchestration around the pure core.

Invariants:
    - Services own IO (counter stores, catalog reads, payment calls); core owns decisions
    - Every collaborator is constructed in container.py (no module singletons)

Design Decisions:
    - One service per guard for locality (ADR: ExMA no god objects)
"""
