"""BLACK CTRL outreach client."""

__version__ = "0.1.0"
