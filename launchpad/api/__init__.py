"""HTTP API for the launchpad."""
