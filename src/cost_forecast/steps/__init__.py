"""Pipeline steps invoked by the CLI."""
