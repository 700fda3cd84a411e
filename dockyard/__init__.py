"""dockyard - plugin-driven docker compose environments."""

__version__ = "1.0.0"
