"""
Erreurs métier de l'API ReShoe.

Chaque couche traduit les échecs bas niveau (Supabase, passerelles) en l'une
de ces classes à sa frontière. Les gestionnaires enregistrés dans
reshoe.app_setup.exception_handlers les convertissent en réponses JSON:
- 4xx: {"detail": <raison>} renvoyé tel quel au client
- 5xx: message générique, détail uniquement dans les logs serveur
"""
from typing import Any, Dict, Optional


class ReShoeError(Exception):
    status_code = 500
    default_detail = "Erreur interne"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ReShoeError):
    status_code = 400
    default_detail = "Données invalides"


class PaymentVerificationError(ReShoeError):
    status_code = 400
    default_detail = "Vérification du paiement échouée"


class ForbiddenError(ReShoeError):
    status_code = 403
    default_detail = "Accès interdit"


class NotFoundError(ReShoeError):
    status_code = 404
    default_detail = "Ressource introuvable"


class ConflictError(ReShoeError):
    status_code = 409
    default_detail = "Conflit d'état"


class ListingUnavailableError(ConflictError):
    default_detail = "Annonce non disponible à l'achat"


class DuplicateCartItemError(ConflictError):
    default_detail = "Article déjà dans le panier"


class StorageError(ReShoeError):
    status_code = 500
    default_detail = "Erreur d'accès aux données"


class GatewayError(ReShoeError):
    status_code = 502
    default_detail = "Passerelle de paiement indisponible"


class ImageUploadError(ReShoeError):
    status_code = 502
    default_detail = "Échec de l'envoi des images"


class PartialSettlementError(ReShoeError):
    """
    Une écriture a échoué après la réservation de l'annonce (status='sold').
    Porte de quoi réconcilier à la main: étape atteinte, annonce, commande, paiement.
    """
    status_code = 500
    default_detail = "Règlement incomplet"

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        stage: str,
        listing_id: str,
        payment_id: str,
        order_id: Optional[str] = None,
    ):
        super().__init__(detail)
        self.stage = stage
        self.listing_id = listing_id
        self.payment_id = payment_id
        self.order_id = order_id

    def reconciliation_info(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "listing_id": self.listing_id,
            "order_id": self.order_id,
            "payment_id": self.payment_id,
        }
