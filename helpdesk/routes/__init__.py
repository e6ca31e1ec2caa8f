"""
API route modules
"""
from helpdesk.routes import ai, health

__all__ = ["ai", "health"]
