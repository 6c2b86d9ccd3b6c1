"""JavaScript sources injected into pages."""
