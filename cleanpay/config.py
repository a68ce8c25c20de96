# cleanpay.config
"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise les secrets (Stripe, Resend) et les adresses e-mail
- Construit un objet Settings immuable, créé une fois au démarrage puis passé
  explicitement aux composants (app.state.settings), sans client Stripe global
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import os

from dotenv import load_dotenv
from fastapi import Request

from cleanpay.exceptions import MissingConfigurationError, MissingSecretError

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

# Variables sans lesquelles le flux de paiement ne peut pas aboutir
REQUIRED_SETTINGS = (
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "RESEND_API_KEY",
    "FROM_EMAIL",
    "TO_EMAIL",
)


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _split_csv(v: Optional[str]) -> List[str]:
    return [x.strip() for x in (v or "").split(",") if x.strip()]


@dataclass(frozen=True)
class Settings:
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    RESEND_API_KEY: str = ""
    FROM_EMAIL: str = ""
    TO_EMAIL: str = ""

    RESEND_API_URL: str = "https://api.resend.com/emails"
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # Pages de succès/annulation du checkout (relatives à l'origine de la requête)
    CHECKOUT_SUCCESS_PATH: str = "/success"
    CHECKOUT_CANCEL_PATH: str = "/quote"
    BASE_URL: str = ""

    WEBHOOK_TOLERANCE_SECONDS: int = 300
    PROCESSED_EVENTS_MAX: int = 1024
    COMPANY_NAME: str = "Integrity Clean Solutions"

    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["*"])
    ALLOWED_HOSTS: List[str] = field(default_factory=lambda: ["*"])

    def require(self, name: str) -> str:
        """
        Retourne la valeur d'un réglage obligatoire.
        - Lève MissingConfigurationError(name) si la valeur est vide.
        - Le secret webhook lève MissingSecretError pour être distingué côté handler.
        """
        value = getattr(self, name, "")
        if not value:
            if name == "STRIPE_WEBHOOK_SECRET":
                raise MissingSecretError(name)
            raise MissingConfigurationError(name)
        return value

    def presence(self) -> Dict[str, bool]:
        """Indique pour chaque réglage obligatoire s'il est renseigné (sans jamais exposer la valeur)."""
        return {name: bool(getattr(self, name, "")) for name in REQUIRED_SETTINGS}


def load_settings(env_path: Optional[Path] = ENV_PATH) -> Settings:
    """
    Lit l'environnement (après chargement explicite du .env) et construit Settings.
    Appelé une seule fois par create_app(); les tests construisent Settings directement.
    """
    if env_path is not None:
        load_dotenv(dotenv_path=env_path, override=False)

    base_url = _clean_env(os.getenv("BASE_URL"))
    if base_url.endswith("/"):
        base_url = base_url.rstrip("/")

    return Settings(
        STRIPE_SECRET_KEY=_clean_env(os.getenv("STRIPE_SECRET_KEY")),
        STRIPE_WEBHOOK_SECRET=_clean_env(os.getenv("STRIPE_WEBHOOK_SECRET")),
        RESEND_API_KEY=_clean_env(os.getenv("RESEND_API_KEY")),
        FROM_EMAIL=_clean_env(os.getenv("FROM_EMAIL")),
        TO_EMAIL=_clean_env(os.getenv("TO_EMAIL")),
        RESEND_API_URL=_clean_env(os.getenv("RESEND_API_URL")) or "https://api.resend.com/emails",
        NOTIFICATION_TIMEOUT_SECONDS=float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10")),
        CHECKOUT_SUCCESS_PATH=os.getenv("CHECKOUT_SUCCESS_PATH", "/success"),
        CHECKOUT_CANCEL_PATH=os.getenv("CHECKOUT_CANCEL_PATH", "/quote"),
        BASE_URL=base_url,
        WEBHOOK_TOLERANCE_SECONDS=int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300")),
        PROCESSED_EVENTS_MAX=int(os.getenv("PROCESSED_EVENTS_MAX", "1024")),
        COMPANY_NAME=os.getenv("COMPANY_NAME", "Integrity Clean Solutions"),
        CORS_ORIGINS=_split_csv(os.getenv("CORS_ORIGINS", "*")),
        ALLOWED_HOSTS=_split_csv(os.getenv("ALLOWED_HOSTS", "*")),
    )


def get_settings(request: Request) -> Settings:
    """Dépendance FastAPI: Settings attaché à l'application par create_app()."""
    return request.app.state.settings
