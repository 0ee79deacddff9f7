"""Provider exports."""

from ..models import ProviderIdentity, ProviderStatus
from .selector import AUTO_PREFERENCE, ProviderSelector, default_statuses

__all__ = [
    "AUTO_PREFERENCE",
    "ProviderIdentity",
    "ProviderSelector",
    "ProviderStatus",
    "default_statuses",
]
