import logging

from sellexa.hooks.debounce import Debouncer
from sellexa.hooks.use_chat import ChatSession
from sellexa.hooks.use_saves import SavesSession
from sellexa.hooks.use_search import SearchSession

chat_logger = None


def get_chat_logger():
    """Initialize chat session logger."""
    global chat_logger
    if not chat_logger:
        from sellexa.utils.logger import setup_logger
        chat_logger = setup_logger(
            name="chat",
            log_level=logging.DEBUG,
            log_file="chat.log",
        )
    return chat_logger


__all__ = ["Debouncer", "ChatSession", "SavesSession", "SearchSession", "get_chat_logger"]
