"""
Core types and protocols used across modules.

This module provides the token audience selector and the credential protocol
shared by every authentication flow.
"""

from enum import Enum
from typing import TYPE_CHECKING, Protocol, Union

if TYPE_CHECKING:
    from azure_login.models import TokenResponse


class TokenAudience(Enum):
    """
    Well-known token audiences.

    A credential with no audience requests tokens for the environment's
    resource-management endpoint. Any other resource can be requested by
    passing its URI as a plain string instead of an enum member.

    Members:
        GRAPH: Azure AD Graph (tenant based, needs a real tenant id)
        BATCH: Azure Batch service
    """

    GRAPH = "graph"
    BATCH = "batch"


AudienceLike = Union[TokenAudience, str, None]


def normalize_audience(audience: AudienceLike) -> AudienceLike:
    """Map the strings "graph" and "batch" onto their enum members."""
    if isinstance(audience, str):
        try:
            return TokenAudience(audience.lower())
        except ValueError:
            return audience
    return audience


class TokenCredential(Protocol):
    """
    Protocol for objects that hand out Azure AD tokens.

    Implemented by every credential class in `azure_login.credentials`.

    Attributes:
        domain: Tenant the credential signs in to
    """

    domain: str

    async def get_token(self) -> "TokenResponse":
        """
        Get a token response for the credential's configured resource.

        Raises:
            adal.AdalError: If the wrapped library rejects the request
            TokenAcquisitionError: If this layer fails to obtain a token
            SdkInternalError: If the token cache could not be repaired
        """
        ...

    async def get_authorization_header(self) -> dict[str, str]:
        """Get an ``Authorization`` header built from a fresh token."""
        ...


__all__ = [
    "TokenAudience",
    "AudienceLike",
    "normalize_audience",
    "TokenCredential",
]
