"""Domain services.

Services coordinate access to a database file independently of the
engine used to open it.
"""

from duckdb_access.domain.services.access_gate import AccessGate, GateStats

__all__ = ["AccessGate", "GateStats"]
