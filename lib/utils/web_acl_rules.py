"""
Web ACL Rule Assembly Utility.

This module turns declarative allow-list intent (allowed IPv4/IPv6 ranges and
allowed country codes) into the ordered set of block rules attached to a WAF
Web ACL. Requests matching none of the block rules fall through to the
default allow action.

The module holds no CDK resources; rendering the rules into CloudFormation
is done by the CommonWebAcl construct.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

NETWORK_RULE_PRIORITY = 1
GEO_RULE_PRIORITY = 2

# WAF IP sets only accept CIDR masks, so "everything" is two /1 halves.
UNIVERSAL_IPV4_RANGES: Tuple[str, ...] = ("0.0.0.0/1", "128.0.0.0/1")
UNIVERSAL_IPV6_RANGES: Tuple[str, ...] = ("::/1", "8000::/1")


class WebAclScope(str, Enum):
    """
    Deployment scope of a Web ACL.

    REGIONAL attaches to regional services (API Gateway, ALB, AppSync),
    CLOUDFRONT (alias EDGE) attaches to CloudFront distributions.
    """

    REGIONAL = "REGIONAL"
    CLOUDFRONT = "CLOUDFRONT"
    EDGE = "CLOUDFRONT"


@dataclass(frozen=True)
class AllowListConfig:
    """
    Allow-list intent for a Web ACL.

    Attributes:
        scope: Deployment scope of the Web ACL
        allowed_ipv4_address_ranges: IPv4 CIDR ranges to allow, None for no restriction
        allowed_ipv6_address_ranges: IPv6 CIDR ranges to allow, None for no restriction
        allowed_country_codes: ISO country codes to allow, None for no restriction
    """

    scope: WebAclScope = WebAclScope.REGIONAL
    allowed_ipv4_address_ranges: Optional[Sequence[str]] = None
    allowed_ipv6_address_ranges: Optional[Sequence[str]] = None
    allowed_country_codes: Optional[Sequence[str]] = None

    @property
    def restricts_network(self) -> bool:
        return (
            self.allowed_ipv4_address_ranges is not None
            or self.allowed_ipv6_address_ranges is not None
        )

    @property
    def restricts_country(self) -> bool:
        return self.allowed_country_codes is not None


@dataclass(frozen=True)
class NetworkMatch:
    """Source address is in the IPv4 set or in the IPv6 set."""

    ipv4_addresses: Tuple[str, ...]
    ipv6_addresses: Tuple[str, ...]


@dataclass(frozen=True)
class GeoMatch:
    """Geo-resolved country of the request is one of the given codes."""

    country_codes: Tuple[str, ...]


RuleMatch = Union[NetworkMatch, GeoMatch]


@dataclass(frozen=True)
class BlockRule:
    """
    A rule blocking every request that does not satisfy its match.

    Attributes:
        name: Rule name, also used as the CloudWatch metric name
        priority: Evaluation order, lower first
        match: Condition a request must satisfy to escape the block
    """

    name: str
    priority: int
    match: RuleMatch
    action: str = field(default="block", init=False)

    @property
    def metric_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class RuleSet:
    """
    Ordered block rules plus the default action for unmatched requests.

    Attributes:
        rules: Block rules in ascending priority
        default_action: Action applied when no rule matches
    """

    rules: Tuple[BlockRule, ...] = ()
    default_action: str = "allow"

    @property
    def is_empty(self) -> bool:
        return not self.rules

    def __iter__(self) -> Iterator[BlockRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def _resolve_addresses(
    declared: Optional[Sequence[str]], universal: Tuple[str, ...]
) -> Tuple[str, ...]:
    if declared is None:
        return universal
    return tuple(declared)


def assemble_rule_set(config: AllowListConfig, identifier: str) -> RuleSet:
    """
    Build the block rules for an allow-list configuration.

    A network rule (priority 1) is emitted when either address family is
    declared; the undeclared family is covered by its universal ranges. A geo
    rule (priority 2) is emitted when country codes are declared. Priorities
    belong to the rule kind and are never renumbered.

    Args:
        config: Allow-list intent
        identifier: Suffix used in rule and metric names

    Returns:
        Rule set in ascending priority, empty when nothing is restricted
    """
    rules = []

    if config.restricts_network:
        rules.append(
            BlockRule(
                name=f"IpSetRule{identifier}",
                priority=NETWORK_RULE_PRIORITY,
                match=NetworkMatch(
                    ipv4_addresses=_resolve_addresses(
                        config.allowed_ipv4_address_ranges, UNIVERSAL_IPV4_RANGES
                    ),
                    ipv6_addresses=_resolve_addresses(
                        config.allowed_ipv6_address_ranges, UNIVERSAL_IPV6_RANGES
                    ),
                ),
            )
        )

    if config.restricts_country:
        rules.append(
            BlockRule(
                name=f"CountryCodeRule{identifier}",
                priority=GEO_RULE_PRIORITY,
                match=GeoMatch(country_codes=tuple(config.allowed_country_codes)),
            )
        )

    for rule in rules:
        logger.debug("Assembled block rule %s (priority %d)", rule.name, rule.priority)

    return RuleSet(rules=tuple(sorted(rules, key=lambda rule: rule.priority)))
