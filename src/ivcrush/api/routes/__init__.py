"""Domain routers mounted under /api/v1."""
