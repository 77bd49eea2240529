"""Singleton settings (ligne id=1).
Initialisation au premier accès par upsert id-épinglé avec ignore_duplicates:
un accès concurrent ne peut ni créer une seconde ligne ni écraser une valeur déjà réglée.
"""
from typing import Any, Dict
import logging

import reshoe.infra.supabase_client as supabase_client
from reshoe.infra.supabase_client import first_row
from reshoe.config import DEFAULT_COMMISSION_RATE, DEFAULT_CONTACT_EMAIL, DEFAULT_PLATFORM_NAME
from reshoe.errors import StorageError

logger = logging.getLogger(__name__)

SETTINGS_ID = 1


def default_settings() -> Dict[str, Any]:
    return {
        "id": SETTINGS_ID,
        "commission_rate": DEFAULT_COMMISSION_RATE,
        "platform_name": DEFAULT_PLATFORM_NAME,
        "contact_email": DEFAULT_CONTACT_EMAIL,
    }


def get_or_create_settings() -> dict:
    client = supabase_client.get_service_supabase()
    try:
        client.table("settings").upsert(
            default_settings(), on_conflict="id", ignore_duplicates=True
        ).execute()
        res = client.table("settings").select("*").eq("id", SETTINGS_ID).limit(1).execute()
    except Exception:
        logger.exception("platform_settings.repository.get_or_create_settings failed")
        raise StorageError()
    row = first_row(res)
    if not row:
        logger.error("platform_settings.repository.get_or_create_settings no row after upsert")
        raise StorageError()
    return row


def update_settings(data: Dict[str, Any]) -> dict:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("settings")
            .update(data)
            .eq("id", SETTINGS_ID)
            .execute()
        )
    except Exception:
        logger.exception("platform_settings.repository.update_settings failed data=%s", data)
        raise StorageError()
    row = first_row(res)
    if not row:
        raise StorageError()
    return row
