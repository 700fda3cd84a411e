"""Plugins shipped with dockyard."""
