"""
Azure AD sign in for Python services, on top of ADAL.

Modules:
    credentials   - Service principal, user, device-code and managed identity credentials
    login         - Login flows returning credentials and reachable subscriptions
    auth_file     - Auth file parsing and cloud resolution
    environments  - Azure cloud endpoint records and registry
    subscriptions - Tenant and subscription listing through resource manager
    config        - Settings from environment variables or YAML
    logging       - Structured JSON logging and ADAL logging options
    errors        - Exception hierarchy (validation, auth, critical)

Design Principles:
    - Async-first: ADAL's blocking calls run in worker threads
    - ADAL errors propagate verbatim; a failed token cache repair is critical
    - Type hints throughout
"""

from .constants import SDK_INTERNAL_ERROR
from .credentials import (
    ApplicationTokenCredentials,
    DeviceTokenCredentials,
    MSITokenCredentials,
    TokenCredentialsBase,
    UserTokenCredentials,
)
from .environments import AZURE_PUBLIC_CLOUD, AzureEnvironment, EnvironmentRegistry
from .errors import (
    AuthFileError,
    AzureLoginError,
    SdkInternalError,
    TokenAcquisitionError,
    ValidationError,
)
from .models import AuthResponse, SubscriptionInfo, TokenResponse
from .types import TokenAudience, TokenCredential

__version__ = "0.1.0"

__all__ = [
    "SDK_INTERNAL_ERROR",
    "TokenCredentialsBase",
    "ApplicationTokenCredentials",
    "UserTokenCredentials",
    "DeviceTokenCredentials",
    "MSITokenCredentials",
    "AzureEnvironment",
    "EnvironmentRegistry",
    "AZURE_PUBLIC_CLOUD",
    "AzureLoginError",
    "ValidationError",
    "AuthFileError",
    "TokenAcquisitionError",
    "SdkInternalError",
    "TokenResponse",
    "SubscriptionInfo",
    "AuthResponse",
    "TokenAudience",
    "TokenCredential",
]
