"""HTTP API for Citetrack."""
