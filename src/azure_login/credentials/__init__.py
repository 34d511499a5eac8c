"""
Token credentials for Azure AD.

Components:
    - TokenCredentialsBase: identity, tenant, audience, environment and cache
    - ApplicationTokenCredentials: service principal with client secret
    - UserTokenCredentials: username and password
    - DeviceTokenCredentials: user signed in through the device-code flow
    - MSITokenCredentials: managed identity endpoint on the local VM
"""

from azure_login.credentials.application import ApplicationTokenCredentials
from azure_login.credentials.base import TokenCredentialsBase
from azure_login.credentials.device import DeviceTokenCredentials
from azure_login.credentials.msi import MSITokenCredentials
from azure_login.credentials.user import UserTokenCredentials

__all__ = [
    "TokenCredentialsBase",
    "ApplicationTokenCredentials",
    "UserTokenCredentials",
    "DeviceTokenCredentials",
    "MSITokenCredentials",
]
