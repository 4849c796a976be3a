"""Provisioning status schema."""

from evalecole.schemas.common import CamelModel
from evalecole.utils.entity_store import ProvisioningStatus


class SetupStatus(CamelModel):
    status: ProvisioningStatus
    backend: str
    script_url: str = "/api/setup/script"
