"""Authentication constants shared by credentials and login flows."""

# Sentinel prefix of the critical error tier (token cache could not be repaired)
SDK_INTERNAL_ERROR = "SDK_INTERNAL_ERROR"

# Azure CLI public client, used when the caller brings no application
DEFAULT_ADAL_CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"
AAD_COMMON_TENANT = "common"
DEFAULT_LANGUAGE = "en-us"
DEFAULT_USERNAME = "user@example.com"

# Auth file
AZURE_AUTH_LOCATION = "AZURE_AUTH_LOCATION"
DEFAULT_SUBSCRIPTION_ENV_VARIABLE = "AZURE_SUBSCRIPTION_ID"

# Managed identity (MSI) extension running on the VM
DEFAULT_MSI_PORT = 50342
DEFAULT_MSI_RESOURCE = "https://management.azure.com/"
DEFAULT_AAD_ENDPOINT = "https://login.microsoftonline.com/"

# Resource manager API used for tenant and subscription listing
ARM_API_VERSION = "2016-06-01"

# HTTP timeout for MSI and resource manager calls
HTTP_TIMEOUT_SECONDS = 30

__all__ = [
    "SDK_INTERNAL_ERROR",
    "DEFAULT_ADAL_CLIENT_ID",
    "AAD_COMMON_TENANT",
    "DEFAULT_LANGUAGE",
    "DEFAULT_USERNAME",
    "AZURE_AUTH_LOCATION",
    "DEFAULT_SUBSCRIPTION_ENV_VARIABLE",
    "DEFAULT_MSI_PORT",
    "DEFAULT_MSI_RESOURCE",
    "DEFAULT_AAD_ENDPOINT",
    "ARM_API_VERSION",
    "HTTP_TIMEOUT_SECONDS",
]
