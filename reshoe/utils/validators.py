import re
import uuid

PHONE_DIGITS = 10

def is_uuid(value: str) -> bool:
    """Vrai si value est un UUID (ids Supabase). Un id mal formé ferait échouer Postgres (22P02)."""
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, TypeError, AttributeError):
        return False

def normalize_phone(v: str) -> str:
    digits = re.sub(r"\D", "", v or "")
    if len(digits) != PHONE_DIGITS:
        raise ValueError(f"Le téléphone doit contenir exactement {PHONE_DIGITS} chiffres")
    return digits
