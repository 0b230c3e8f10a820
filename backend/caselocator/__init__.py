"""
CaseLocator Backend — Application Package Initializer
=====================================================

What: Marks the `caselocator` directory as a Python package.
Who:  Imported by uvicorn (`caselocator.main:app`), pytest, and any case-form
      session that drives the location cascade directly.

Architecture Note:
    The package resolves hierarchical location data for case intake
    (country → state → city → representative coordinate):

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Cascade Controller + Sessions     │  ← Form-level state machine
    ├─────────────────────────────────────┤
    │  Directory / Search / Coordinates   │  ← Failover, debounce, dedupe
    ├─────────────────────────────────────┤
    │   Remote Provider | Fallback Data   │  ← Live API or bundled tables
    └─────────────────────────────────────┘

    Everything below the routes is usable without HTTP, which is how the
    case form consumes it.
"""

__version__ = "1.0.0"
