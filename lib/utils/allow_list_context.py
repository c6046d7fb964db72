"""
Allow-list Context Utility.

This module reads Web ACL allow-lists from CDK context, either from cdk.json
or from `-c key=value` arguments on the command line. A missing or null key
leaves the dimension unrestricted; an empty list restricts it to nothing.
"""

import json
import logging
from typing import List, Optional

from constructs import Node

from lib.utils.web_acl_rules import AllowListConfig, WebAclScope

logger = logging.getLogger(__name__)

IPV4_CONTEXT_KEY = "allowedIpV4AddressRanges"
IPV6_CONTEXT_KEY = "allowedIpV6AddressRanges"
COUNTRY_CONTEXT_KEY = "allowedCountryCodes"


def context_key(prefix: str, key: str) -> str:
    """
    Build a context key, camel-casing it onto a non-empty prefix.

    Args:
        prefix: Key prefix such as "publishedApi", or "" for none
        key: Base context key

    Returns:
        Prefixed context key
    """
    if not prefix:
        return key
    return f"{prefix}{key[0].upper()}{key[1:]}"


def parse_string_list(key: str, value) -> Optional[List[str]]:
    """
    Normalize a raw context value into a list of strings.

    Args:
        key: Context key the value came from, used in error messages
        value: Raw context value

    Returns:
        List of stripped strings, or None when the value is unset

    Raises:
        ValueError: If the value is neither null, a string nor a list of strings
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        if text.startswith("[") or text == "null":
            try:
                value = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"Context '{key}' is not valid JSON: {e}") from e
            if value is None:
                return None
        else:
            value = [entry for entry in text.split(",") if entry.strip()]
            if not value:
                raise ValueError(
                    f"Context '{key}' is empty; pass a JSON list such as '[]' "
                    "to block everything or 'null' for no restriction"
                )

    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"Context '{key}' must be a list of strings, got {value!r}")

    return [v.strip() for v in value]


def parse_bool(key: str, value) -> bool:
    """
    Normalize a raw context flag into a boolean.

    Args:
        key: Context key the value came from, used in error messages
        value: Raw context value, a bool from cdk.json or a string from `-c`

    Returns:
        The flag value, False when unset

    Raises:
        ValueError: If the value is neither a bool nor "true"/"false"
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Context '{key}' must be true or false, got {value!r}")


def load_allow_list_config(
    node: Node,
    scope: WebAclScope,
    prefix: str = "",
) -> AllowListConfig:
    """
    Load an allow-list configuration from CDK context.

    Args:
        node: Construct node to read context from, usually `app.node`
        scope: Deployment scope of the Web ACL
        prefix: Optional prefix of the context keys

    Returns:
        Allow-list configuration for the Web ACL
    """
    ipv4_key = context_key(prefix, IPV4_CONTEXT_KEY)
    ipv6_key = context_key(prefix, IPV6_CONTEXT_KEY)
    country_key = context_key(prefix, COUNTRY_CONTEXT_KEY)

    country_codes = parse_string_list(country_key, node.try_get_context(country_key))
    if country_codes is not None:
        country_codes = [code.upper() for code in country_codes]

    config = AllowListConfig(
        scope=scope,
        allowed_ipv4_address_ranges=parse_string_list(
            ipv4_key, node.try_get_context(ipv4_key)
        ),
        allowed_ipv6_address_ranges=parse_string_list(
            ipv6_key, node.try_get_context(ipv6_key)
        ),
        allowed_country_codes=country_codes,
    )

    logger.debug("Loaded allow-list config %s from context", config)
    return config
