"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services own IO (database sessions, local storage, external generators)
    - Boundary operations return Outcome; routes turn a failed Outcome into the error envelope

Design Decisions:
    - One file per concern (cache, trial store, trial gate, trial authority, transfer,
      generation, projects) for locality
"""
