"""Infrastructure layer - engine, connections, migrations and logging."""
