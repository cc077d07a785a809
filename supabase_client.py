"""
Supabase Client Configuration

Lazily initializes the Supabase client used by the translation repositories.
The client is created on first access so importing this module never
touches the network or requires credentials.
"""

# Standard library
import logging
import os

# Third-party
from supabase import Client, create_client

# Configure logging
logger = logging.getLogger(__name__)

supabase: Client | None = None
_initialized = False


def init_supabase() -> Client | None:
    """
    Creates the Supabase client from SUPABASE_URL / SUPABASE_KEY.

    Returns:
        The client, or None when credentials are missing or creation fails.
    """
    global supabase, _initialized

    _initialized = True
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")

    if not url or not key:
        logger.warning("SUPABASE_URL or SUPABASE_KEY not found - database features disabled")
        supabase = None
        return None

    try:
        supabase = create_client(url, key)
        logger.info("Supabase client initialized successfully")
    except Exception as e:  # noqa: BLE001
        logger.error(f"Failed to initialize Supabase client: {e}")
        supabase = None
    return supabase


def get_supabase() -> Client | None:
    """Returns the cached client, initializing it on first use."""
    if not _initialized:
        return init_supabase()
    return supabase


def reset_supabase_for_tests() -> None:
    """Drops the cached client so the next access re-reads the environment."""
    global supabase, _initialized
    supabase = None
    _initialized = False
