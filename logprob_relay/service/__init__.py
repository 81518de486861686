"""HTTP surface of the relay (FastAPI)."""
