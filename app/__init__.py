"""
Service template — task service library root.

Subpackages:
    core       domain models, config, services, observability
    adapters   SQLite storage and event streaming
    ui         HTTP layer (Flask)
    cli        project generator (template repository only)
"""

__version__ = "0.1.0"

__all__ = [
    "adapters",
    "cli",
    "core",
    "ui",
]
