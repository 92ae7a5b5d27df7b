from pydantic import BaseModel, ValidationError
from typing import Optional
import logging

from hrms_portal.core.session import SessionUser
from hrms_portal.services.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

class LoginResult(BaseModel):
    """Signed-in user and bearer token returned by the backend"""
    user: SessionUser
    token: str

class AuthService:
    """Credential exchange with the backend"""

    def __init__(self, client: ApiClient):
        self.client = client

    def login(self, email: str, password: str) -> LoginResult:
        """
        Exchange credentials for a bearer token.

        Args:
            email: User email
            password: Plain text password

        Returns:
            LoginResult with the user and token

        Raises:
            ApiError: Backend rejected the credentials or is unavailable,
                or the reply has no usable token/user
        """
        data = self.client.post("/auth/login", json={"email": email, "password": password})
        if not isinstance(data, dict):
            raise ApiError(status_code=None, detail="Unexpected login response")

        token: Optional[str] = data.get("token") or data.get("access_token")
        try:
            user = SessionUser(**(data.get("user") or {}))
        except ValidationError as e:
            logger.error(f"Login response without valid user: {str(e)}")
            raise ApiError(status_code=None, detail="Unexpected login response")

        if not token:
            logger.error("Login response without token")
            raise ApiError(status_code=None, detail="Unexpected login response")

        return LoginResult(user=user, token=token)
