"""Rate limiting adapters.

Limiters consume budget from a shared counter store, so the same policy works
against the in-process store and Redis without changing the gate.
"""
