"""Built-in plugins shipped with fusegraph."""
