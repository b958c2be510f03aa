# API module - REST client for the claims backend
from .client import ApiClient, extract_error_message

__all__ = ["ApiClient", "extract_error_message"]
