"""HTTP API for the event generator."""
