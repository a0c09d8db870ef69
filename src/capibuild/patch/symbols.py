"""Symbol retention manifest.

Ordered list of the C API entry points the shared library must export. This
list has to stay in lockstep with the bindings that load the library: every
name here is referenced from the retention stub, so a name missing from the
header breaks the build.
"""

import re
from typing import Iterable, List, Tuple

SET_CACHE_DIR_SYMBOL = "litert_lm_engine_settings_set_cache_dir"

SYMBOL_MANIFEST: Tuple[str, ...] = (
    # Logging
    "litert_lm_set_min_log_level",
    # Engine settings
    "litert_lm_engine_settings_create",
    "litert_lm_engine_settings_delete",
    "litert_lm_engine_settings_set_max_num_tokens",
    SET_CACHE_DIR_SYMBOL,
    # Engine
    "litert_lm_engine_create",
    "litert_lm_engine_delete",
    # Session
    "litert_lm_session_config_create",
    "litert_lm_session_config_delete",
    "litert_lm_engine_create_session",
    "litert_lm_session_delete",
    # Conversation
    "litert_lm_conversation_config_create",
    "litert_lm_conversation_config_delete",
    "litert_lm_conversation_create",
    "litert_lm_conversation_delete",
    "litert_lm_conversation_send_message",
    "litert_lm_conversation_send_message_stream",
    # Responses
    "litert_lm_json_response_delete",
    "litert_lm_json_response_get_string",
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_manifest(symbols: Iterable[str]) -> List[str]:
    """Check symbol names are C identifiers without duplicates.

    Returns:
        The symbols as a list, in order

    Raises:
        ValueError: On an invalid or duplicate name
    """
    seen = set()
    result = []
    for name in symbols:
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid C identifier in symbol manifest: {name!r}")
        if name in seen:
            raise ValueError(f"Duplicate symbol in manifest: {name}")
        seen.add(name)
        result.append(name)
    return result


def missing_symbols(header_text: str, symbols: Iterable[str] = SYMBOL_MANIFEST) -> List[str]:
    """Return manifest symbols that are not declared as functions in the header."""
    missing = []
    for name in symbols:
        if not re.search(rf"\b{re.escape(name)}\s*\(", header_text):
            missing.append(name)
    return missing
