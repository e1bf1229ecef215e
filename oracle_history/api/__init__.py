"""HTTP surface of the Oracle Query History service (FastAPI routers and app factory)."""
