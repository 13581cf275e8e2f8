"""
This module manages the access token used by :class:`~netservice.plugins.AccessTokenPlugin`.
It handles retrieval of the token from environment variables or direct input.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_ACCESS_TOKEN = "NETSERVICE_ACCESS_TOKEN"


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Container for a bearer access token.
    Ensures the token is present and renders the Authorization header value.
    """

    access_token: str

    @staticmethod
    def from_env_or_value(access_token: str | None) -> AuthConfig:
        """
        Create an AuthConfig instance from a provided value or environment variable.

        Args:
            access_token: Optional token string provided by the user.

        Returns:
            An initialized AuthConfig instance containing the token.

        Raises:
            ValueError: If no token is found in both the argument and environment.
        """
        token = access_token or os.getenv(ENV_ACCESS_TOKEN)

        if not token:
            raise ValueError(
                "Access token missing. Define NETSERVICE_ACCESS_TOKEN in environment or pass access_token value"
            )
        return AuthConfig(access_token=token)

    @property
    def authorization(self) -> str:
        return f"Bearer {self.access_token}"
