"""Outer surfaces of the engine: arbiter line protocol, CLI and REST API."""
