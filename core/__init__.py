# Core module - configuration, errors, kubernetes collaborator
from .config import settings, Settings, ProviderConfig
from .kubernetes import (
    ResourceNotFound,
    ResourceManager,
    KubernetesResourceManager,
    StaticResourceManager,
)

__all__ = [
    'settings',
    'Settings',
    'ProviderConfig',
    'ResourceNotFound',
    'ResourceManager',
    'KubernetesResourceManager',
    'StaticResourceManager',
]
