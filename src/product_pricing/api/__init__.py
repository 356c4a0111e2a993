"""API subpackage - FastAPI adapter over the product editing session."""
