"""Authentication and user provisioning for the inventory API."""

from .bypass import DEV_TOKEN, DEV_USER_HEADER, DevBypass
from .cache import ProvisioningCache
from .gateway import AuthGateway, CurrentContext, require_context
from .provisioning import UserProvisioner
from .tokens import TokenVerifier, extract_bearer

__all__ = [
    'AuthGateway',
    'CurrentContext',
    'DEV_TOKEN',
    'DEV_USER_HEADER',
    'DevBypass',
    'ProvisioningCache',
    'TokenVerifier',
    'UserProvisioner',
    'extract_bearer',
    'require_context',
]
