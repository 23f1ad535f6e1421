"""
Super Admins module - platform operator accounts.
"""

from mosque_registry.modules.super_admins.models import SuperAdmin
from mosque_registry.modules.super_admins.repository import SuperAdminRepository

__all__ = ["SuperAdmin", "SuperAdminRepository"]
