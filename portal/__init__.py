"""Parish communications portal."""
