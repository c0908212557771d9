"""Database layer: engine, models and repositories."""
