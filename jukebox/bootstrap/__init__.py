"""Bootstrap wiring for the database engine and session factory."""
