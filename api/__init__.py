"""Haven Care HTTP API."""
