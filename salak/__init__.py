"""SALAK document management: request authentication and API-key vault."""
