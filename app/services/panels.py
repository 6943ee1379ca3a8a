"""Panel-side lookups that go through the renewal API (package discovery)."""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.integrations import renewal_api
from app.models.panel_credential import PanelCredential, PanelProvider
from app.services.errors import ConfigurationError, NotFoundError
from app.services.providers import get_adapter
from app.services.settings import load_renewal_api_config

logger = logging.getLogger(__name__)


def list_sigma_packages(db: Session, owner_id: int, credential_id: int) -> Dict[str, Any]:
    """Plan codes available on a Sigma panel, for filling Plan.package_id."""
    credential = (
        db.query(PanelCredential)
        .filter(PanelCredential.id == credential_id, PanelCredential.user_id == owner_id)
        .first()
    )
    if not credential:
        raise NotFoundError("Credential not found")

    adapter = get_adapter(credential.provider)
    if adapter.provider != PanelProvider.SIGMA:
        raise ConfigurationError("Only sigma supports package discovery")

    config = load_renewal_api_config(db)
    domain = adapter.target_domain(credential)
    if not domain.startswith("http"):
        domain = f"https://{domain}"

    return renewal_api.list_sigma_packages(config, credential.username, credential.password, domain)
