"""HTTP API for the BBVA connector."""
from connector.api.routes import router

__all__ = ["router"]
