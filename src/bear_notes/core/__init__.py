"""Core package - configuration, logging, errors and database access."""
