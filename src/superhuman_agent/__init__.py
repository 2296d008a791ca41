"""Remote control for the Superhuman desktop app over its debugging port."""

__version__ = "0.1.0"
