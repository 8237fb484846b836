"""Tenant-scoped repositories."""

from .base import TenantScopedRepository
from .booking import BookingRepository
from .contract import ContractRepository
from .directory import DirectoryRepository

__all__ = [
    "TenantScopedRepository",
    "BookingRepository",
    "ContractRepository",
    "DirectoryRepository",
]
