"""Provider-specific geocoding clients (internal)."""
