"""HTTP API for treasury-relay."""
