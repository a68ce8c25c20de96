"""
Catalogue des services (données statiques chargées une fois à l'import).
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from cleanpay.exceptions import ServiceNotFoundError


# module cleanpay.catalog.services
@dataclass(frozen=True)
class ServiceDescriptor:
    id: str
    name: str
    description: str
    base_price: int  # centimes
    currency: str = "usd"

    def to_public(self) -> Dict[str, Any]:
        data = asdict(self)
        data["price"] = data.pop("base_price")
        return data


CLEANING_SERVICES: Dict[str, ServiceDescriptor] = {
    s.id: s
    for s in (
        ServiceDescriptor(
            id="regular-cleaning",
            name="Limpieza Regular",
            description="Servicio de limpieza semanal o quincenal para hogares y oficinas",
            base_price=15000,
        ),
        ServiceDescriptor(
            id="deep-cleaning",
            name="Limpieza Profunda",
            description="Limpieza exhaustiva incluyendo áreas que normalmente no se limpian",
            base_price=30000,
        ),
        ServiceDescriptor(
            id="move-in-out",
            name="Limpieza de Mudanza",
            description="Limpieza completa para mudanzas (entrada o salida)",
            base_price=25000,
        ),
        ServiceDescriptor(
            id="post-construction",
            name="Limpieza Post-Construcción",
            description="Limpieza especializada después de trabajos de construcción",
            base_price=50000,
        ),
    )
}

# Type de service saisi dans le formulaire de devis -> entrée du catalogue
SERVICE_TYPE_TO_ID: Dict[str, str] = {
    "Standard Clean": "regular-cleaning",
    "Deep Cleaning": "deep-cleaning",
    "Move-in Clean": "move-in-out",
    "Move-out Clean": "move-in-out",
    "Post-Construction": "post-construction",
    "One-Time Clean": "regular-cleaning",
}
DEFAULT_SERVICE_ID = "regular-cleaning"


def get_service(service_id: Optional[str]) -> Optional[ServiceDescriptor]:
    return CLEANING_SERVICES.get(str(service_id or "").strip())


def require_service(service_id: Optional[str]) -> ServiceDescriptor:
    """
    Retourne le service du catalogue.
    - Lève ServiceNotFoundError (400) si l'identifiant est inconnu.
    """
    service = get_service(service_id)
    if service is None:
        raise ServiceNotFoundError(str(service_id or ""))
    return service


def list_services() -> List[ServiceDescriptor]:
    return list(CLEANING_SERVICES.values())


def service_id_for(service_type: Optional[str]) -> str:
    """Identifiant catalogue associé à un type de service (repli: regular-cleaning)."""
    return SERVICE_TYPE_TO_ID.get(str(service_type or "").strip(), DEFAULT_SERVICE_ID)
