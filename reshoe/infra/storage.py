"""
Stockage des images d'annonces (Supabase Storage).
- Les images arrivent en data URI (data:image/png;base64,...) depuis le formulaire vendeur
- Chaque image est envoyée dans le bucket LISTING_IMAGES_BUCKET puis remplacée par son URL publique
- Les URLs http(s) déjà hébergées sont conservées telles quelles
- Un seul échec fait échouer tout le lot (ImageUploadError)
- staged_images supprime les objets du lot si l'écriture de l'annonce qui suit échoue
"""
import base64
import binascii
import logging
import re
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple
from uuid import uuid4

import reshoe.infra.supabase_client as supabase_client
from reshoe.config import LISTING_IMAGES_BUCKET
from reshoe.errors import ImageUploadError, ValidationError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)
_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Retourne (mime, octets) ou lève ValidationError si le format n'est pas reconnu."""
    match = _DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ValidationError("Image invalide: data URI ou URL http(s) attendue")
    mime = match.group("mime").lower()
    if mime not in _EXTENSIONS:
        raise ValidationError(f"Format d'image non supporté: {mime}")
    try:
        content = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image invalide: base64 illisible")
    return mime, content

def _bucket():
    return supabase_client.get_service_supabase().storage.from_(LISTING_IMAGES_BUCKET)

def _store(image: str, folder: str) -> Tuple[str, Optional[str]]:
    """(URL publique, chemin dans le bucket); chemin None pour une URL conservée."""
    if image.startswith(("http://", "https://")):
        return image, None
    mime, content = decode_data_uri(image)
    path = f"{folder}/{uuid4().hex}.{_EXTENSIONS[mime]}"
    try:
        bucket = _bucket()
        bucket.upload(path, content, {"content-type": mime})
        url = bucket.get_public_url(path)
    except Exception:
        logger.exception("storage._store failed path=%s", path)
        raise ImageUploadError()
    # Le SDK peut suffixer l'URL publique par un '?' vide
    return str(url).rstrip("?"), path

def discard_uploads(paths: List[str]) -> None:
    """Supprime des objets envoyés par ce processus. Appelée sur un chemin d'erreur: l'échec est journalisé."""
    if not paths:
        return
    try:
        _bucket().remove(paths)
    except Exception:
        logger.exception("storage.discard_uploads failed paths=%s", paths)
    else:
        logger.info("storage.discard_uploads removed=%s", len(paths))

@contextmanager
def staged_images(images: List[str], folder: str = "listings") -> Iterator[List[str]]:
    """
    Envoie les images et fournit leurs URLs (ordre conservé) au bloc with.
    Si l'envoi ou le bloc échoue, les objets créés par ce lot sont supprimés du bucket;
    les URLs http(s) reçues telles quelles ne sont jamais touchées.
    """
    paths: List[str] = []
    try:
        urls = []
        for img in images:
            url, path = _store(img, folder)
            urls.append(url)
            if path:
                paths.append(path)
        yield urls
    except Exception:
        discard_uploads(paths)
        raise
