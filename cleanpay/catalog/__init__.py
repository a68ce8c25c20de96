"""
Module 'catalog': catalogue statique des services de nettoyage (lecture seule).
"""

from .services import ServiceDescriptor, CLEANING_SERVICES, get_service, require_service, list_services, service_id_for

__all__ = [
    "ServiceDescriptor",
    "CLEANING_SERVICES",
    "get_service",
    "require_service",
    "list_services",
    "service_id_for",
]
