from client.api_client import ApiClient, ApiError
from client.backends import HealthBackend, LocalBackend
from client.state import AppState, AuthState

__all__ = [
    "ApiClient",
    "ApiError",
    "AppState",
    "AuthState",
    "HealthBackend",
    "LocalBackend",
]
