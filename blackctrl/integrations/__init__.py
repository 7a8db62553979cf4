"""Clients for the services behind the BLACK CTRL API."""
