"""
Provider adapter registry for the external renewal API.

Each IPTV panel provider needs a slightly different renewal request. An adapter
knows three things about its provider: where the panel lives (a fixed host or
the domain stored on the credential), which field carries the subscriber id,
and any extra fields (package codes, connection type). Building a payload is
pure: no database or network access happens here.
"""
from typing import Any, Dict, Optional

from app.models.client import Client
from app.models.panel_credential import PanelCredential, PanelProvider
from app.models.plan import Plan
from app.services.errors import ConfigurationError, UnknownProviderError


class ProviderAdapter:
    provider: PanelProvider
    # Host of the panel when the provider has a single public instance
    fixed_domain: Optional[str] = None
    # Key under which the credential's domain is sent, for domain-based providers
    domain_field: Optional[str] = None

    @property
    def needs_domain(self) -> bool:
        return self.fixed_domain is None

    def target_domain(self, credential: PanelCredential) -> str:
        if self.fixed_domain:
            return self.fixed_domain
        domain = (credential.domain or "").strip()
        if not domain:
            raise ConfigurationError(
                f"Panel credential {credential.id} ({self.provider.value}) requires a domain"
            )
        return domain

    def subscriber_id(self, client: Client) -> Optional[str]:
        return client.username or None

    def extra_fields(self, client: Client, plan: Plan, credential: PanelCredential) -> Dict[str, Any]:
        return {}

    def build_payload(self, client: Client, plan: Plan, credential: PanelCredential) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "provider": self.provider.value,
            "credentials": {"username": credential.username, "password": credential.password},
            "client_name": client.name,
            "months": plan.duration_months,
            "telas": plan.num_screens or 1,
        }
        if client.suffix:
            payload["suffix"] = client.suffix
        subscriber = self.subscriber_id(client)
        if subscriber:
            payload["client_id"] = subscriber
        if self.domain_field:
            payload[self.domain_field] = self.target_domain(credential)
        payload.update(self.extra_fields(client, plan, credential))
        return payload


class SigmaAdapter(ProviderAdapter):
    provider = PanelProvider.SIGMA
    domain_field = "sigma_domain"

    def extra_fields(self, client, plan, credential):
        return {"sigma_plan_code": plan.package_id}


class CloudNationAdapter(ProviderAdapter):
    provider = PanelProvider.CLOUDNATION
    fixed_domain = "painel.cloudnation.top"


class KofficeAdapter(ProviderAdapter):
    provider = PanelProvider.KOFFICE
    domain_field = "koffice_domain"

    def extra_fields(self, client, plan, credential):
        # Koffice always expects the key, even when the client has no username
        return {"client_id": client.username}


class UniplayAdapter(ProviderAdapter):
    provider = PanelProvider.UNIPLAY
    fixed_domain = "gesapioffice.com"


class ClubAdapter(ProviderAdapter):
    provider = PanelProvider.CLUB
    fixed_domain = "dashboard.bz"

    def extra_fields(self, client, plan, credential):
        return {"client_id": client.username}


class RushAdapter(ProviderAdapter):
    provider = PanelProvider.RUSH
    fixed_domain = "paineloffice.click"

    def extra_fields(self, client, plan, credential):
        return {"rush_type": plan.rush_type or "IPTV"}


class PainelFodaAdapter(ProviderAdapter):
    provider = PanelProvider.PAINELFODA
    domain_field = "painelfoda_domain"

    def extra_fields(self, client, plan, credential):
        return {"painelfoda_package_id": plan.package_id}


ADAPTERS: Dict[PanelProvider, ProviderAdapter] = {
    adapter.provider: adapter
    for adapter in (
        SigmaAdapter(),
        CloudNationAdapter(),
        KofficeAdapter(),
        UniplayAdapter(),
        ClubAdapter(),
        RushAdapter(),
        PainelFodaAdapter(),
    )
}

_missing = set(PanelProvider) - set(ADAPTERS)
if _missing:
    raise RuntimeError(f"No renewal adapter for providers: {sorted(p.value for p in _missing)}")


def get_adapter(provider) -> ProviderAdapter:
    """Look up the adapter for a provider tag (enum member or raw string)."""
    try:
        return ADAPTERS[PanelProvider(provider)]
    except (ValueError, KeyError):
        raise UnknownProviderError(provider) from None


def build_renewal_payload(client: Client, plan: Plan, credential: PanelCredential) -> Dict[str, Any]:
    """Exact request body for POST {api_url}/renew."""
    return get_adapter(credential.provider).build_payload(client, plan, credential)
