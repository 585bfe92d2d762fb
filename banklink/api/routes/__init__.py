"""
API Routes
"""
from banklink.api.routes import seb

__all__ = ["seb"]
