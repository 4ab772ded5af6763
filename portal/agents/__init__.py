"""AI agents used by the portal."""
