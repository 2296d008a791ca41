"""CLI command modules; each exposes a Typer app merged into the top level."""
