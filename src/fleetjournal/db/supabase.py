"""Supabase client for the journal backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Tables used by the journal backend:
#
#   journal_policies          work hours, work days, office locations, thresholds
#   driving_journal_entries   one row per trip
#   geofences                 circular regions with optional auto classification
#   geofence_states           last known inside/outside flag, unique on (entity_id, geofence_id)
#   vehicles                  registration, type and GPS device id
#   mileage_policies          rate per km per vehicle type
#   users                     driver lookup by email
