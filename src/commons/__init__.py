"""Commons package - settings, telemetry and infrastructure base classes."""
