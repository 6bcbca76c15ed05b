"""REST API access."""
