import logging

from sellexa.data.supabase.errors import BackendError
from sellexa.data.supabase.client import SupabaseClient, Query
from sellexa.data.supabase.auth import SupabaseAuth

gateway_logger = None


def get_gateway_logger():
    """Initialize backend gateway logger."""
    global gateway_logger
    if not gateway_logger:
        from sellexa.utils.logger import setup_logger
        gateway_logger = setup_logger(
            name="gateway",
            log_level=logging.DEBUG,
            log_file="gateway.log",
        )
    return gateway_logger


__all__ = ["BackendError", "SupabaseClient", "Query", "SupabaseAuth", "get_gateway_logger"]
