"""Service layer used by the command and event cogs."""
