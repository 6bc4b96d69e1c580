"""Hierarchical policy assignment and resolution engine.

Modules:
- config: load and validate configuration (YAML or JSON)
- errors: error taxonomy shared by services and actions
- domain: SQLAlchemy models, repositories and session helpers
- services: resolution, edit windows, approval routing, admin mutations
- actions: authorized mutations returning structured results
- io: CSV import/export helpers
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "domain",
    "services",
    "actions",
    "io",
    "cli",
]
