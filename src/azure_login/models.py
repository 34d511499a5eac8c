"""Token, subscription and login result models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from azure_login.credentials.base import TokenCredentialsBase


def _parse_expires_on(value: Any) -> datetime | None:
    """
    Parse an expiry timestamp into an aware UTC datetime.

    ADAL returns a local-time string ("2026-01-05 14:30:00.123456"), the MSI
    endpoint returns epoch seconds (as int or numeric string).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone(UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)
    if isinstance(value, str):
        if value.isdigit():
            return datetime.fromtimestamp(int(value), UTC)
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.astimezone(UTC)
    return None


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class TokenResponse:
    """
    Access token returned to the caller.

    Not persisted by this layer. ``raw`` holds the untouched response produced
    by ADAL or the MSI endpoint.

    Attributes:
        access_token: The access token string
        token_type: Authorization scheme (typically "Bearer")
        expires_in: Lifetime in seconds at issue time
        expires_on: UTC timestamp when the token expires
        resource: Resource the token was issued for
        user_id: Signed-in user (user and device flows)
        refresh_token: Refresh token, if the flow issued one
        tenant_id: Tenant that issued the token
        raw: Original response dict
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    expires_on: datetime | None = None
    resource: str | None = None
    user_id: str | None = None
    refresh_token: str | None = None
    tenant_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_adal(cls, response: dict[str, Any]) -> "TokenResponse":
        """Create a token response from an ADAL token dict (camelCase keys)."""
        return cls(
            access_token=response["accessToken"],
            token_type=response.get("tokenType", "Bearer"),
            expires_in=_to_int(response.get("expiresIn")),
            expires_on=_parse_expires_on(response.get("expiresOn")),
            resource=response.get("resource"),
            user_id=response.get("userId"),
            refresh_token=response.get("refreshToken"),
            tenant_id=response.get("tenantId"),
            raw=response,
        )

    @classmethod
    def from_msi(cls, response: dict[str, Any]) -> "TokenResponse":
        """Create a token response from an MSI endpoint payload (snake_case keys)."""
        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type", "Bearer"),
            expires_in=_to_int(response.get("expires_in")),
            expires_on=_parse_expires_on(response.get("expires_on")),
            resource=response.get("resource"),
            refresh_token=response.get("refresh_token"),
            raw=response,
        )

    @property
    def authorization_value(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"{self.token_type} {self.access_token}"


@dataclass
class SubscriptionInfo:
    """A subscription reachable with a credential."""

    id: str
    subscription_id: str
    tenant_id: str
    display_name: str | None = None
    state: str | None = None
    user_name: str | None = None
    user_type: str = "user"
    environment_name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_arm(
        cls,
        item: dict[str, Any],
        tenant_id: str,
        user_name: str,
        user_type: str,
        environment_name: str,
    ) -> "SubscriptionInfo":
        """Create from one entry of the resource manager ``/subscriptions`` listing."""
        return cls(
            id=item.get("id", ""),
            subscription_id=item["subscriptionId"],
            tenant_id=tenant_id,
            display_name=item.get("displayName"),
            state=item.get("state"),
            user_name=user_name,
            user_type=user_type,
            environment_name=environment_name,
            raw=item,
        )


@dataclass
class AuthResponse:
    """Result of a login flow: the credential and the subscriptions it can reach."""

    credentials: "TokenCredentialsBase"
    subscriptions: list[SubscriptionInfo] = field(default_factory=list)


__all__ = ["TokenResponse", "SubscriptionInfo", "AuthResponse"]
