"""
Taxonomie des erreurs métier.
Chaque exception porte le code HTTP et un message public (jamais le détail interne)
rendus par cleanpay.app_setup.exception_handlers sous la forme {"error": message}.
"""
from typing import Optional


class CleanPayError(Exception):
    status_code: int = 500
    public_message: str = "Erreur interne du serveur"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_public(self) -> str:
        return self.message


# --- Validation (400, corrigeable par le client) ---
class ValidationError(CleanPayError):
    status_code = 400
    public_message = "Requête invalide"


class ServiceNotFoundError(ValidationError):
    public_message = "Servicio no encontrado"

    def __init__(self, service_id: str):
        super().__init__(self.public_message)
        self.service_id = service_id


class QuoteValidationError(ValidationError):
    public_message = "Données de devis invalides"


class EventPayloadError(ValidationError):
    public_message = "Invalid event payload"


# --- Configuration (500, corrigeable par l'opérateur) ---
class ConfigurationError(CleanPayError):
    status_code = 500
    public_message = "Erreur de configuration du serveur"

    def to_public(self) -> str:
        # Le nom de la variable reste dans les logs, pas dans la réponse
        return self.public_message


class MissingConfigurationError(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(f"{name} manquant")
        self.name = name


class MissingSecretError(MissingConfigurationError):
    public_message = "Webhook secret not configured"

    def __init__(self, name: str = "STRIPE_WEBHOOK_SECRET"):
        super().__init__(name)


# --- Amont (500, transitoire) ---
class UpstreamError(CleanPayError):
    status_code = 500
    public_message = "Error interno del servidor"


class UpstreamGatewayError(UpstreamError):
    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        super().__init__(message or self.public_message)
        self.cause = cause


class SessionNotReadyError(CleanPayError):
    status_code = 404
    public_message = "URL de checkout no disponible"

    def __init__(self, session_id: str):
        super().__init__(self.public_message)
        self.session_id = session_id


# --- Authenticité des événements entrants (400, jamais rejoué) ---
class AuthenticityError(CleanPayError):
    status_code = 400
    public_message = "Invalid signature"


class MissingSignatureError(AuthenticityError):
    public_message = "No signature provided"


class SignatureInvalidError(AuthenticityError):
    public_message = "Invalid signature"


# --- Notifications (toujours contenues, jamais propagées à la requête) ---
class NotificationError(CleanPayError):
    public_message = "Notification non envoyée"


class NotificationCompositionError(NotificationError):
    pass


class NotificationDeliveryError(NotificationError):
    pass
