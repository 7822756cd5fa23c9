"""Record types and formatting helpers shared by the engine, API and CLI."""
