"""
Common Web ACL Construct.

This module implements a WAF Web ACL that restricts access to an allow-list of
IPv4/IPv6 ranges and country codes. Requests outside the allow-list are
blocked; everything else is allowed by default. The same construct serves
CloudFront distributions and regional resources such as API Gateway.

The module handles:
- IPv4 and IPv6 IP set creation
- Block rule rendering from the assembled rule set
- Default allow action
- CloudWatch metrics configuration
"""

import logging
from dataclasses import dataclass
from typing import List

from aws_cdk import Names
from aws_cdk import aws_wafv2 as wafv2
from constructs import Construct

from lib.utils.web_acl_rules import (
    AllowListConfig,
    BlockRule,
    GeoMatch,
    NetworkMatch,
    RuleMatch,
    RuleSet,
    WebAclScope,
    assemble_rule_set,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommonWebAclProps(AllowListConfig):
    """
    Properties for the common Web ACL.

    Attributes:
        scope: REGIONAL or CLOUDFRONT
        allowed_ipv4_address_ranges: IPv4 CIDR ranges to allow, None for no restriction
        allowed_ipv6_address_ranges: IPv6 CIDR ranges to allow, None for no restriction
        allowed_country_codes: ISO country codes to allow, None for no restriction
    """


class CommonWebAcl(Construct):
    """
    Web ACL blocking requests from outside the allowed networks and countries.

    Attributes:
        web_acl: The underlying CfnWebACL resource
        web_acl_arn: ARN of the created Web ACL
        rule_set: Block rules rendered into the Web ACL
        ipv6_enabled: False when the IPv6 allow-list is declared empty
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: AllowListConfig,
    ) -> None:
        """
        Initialize CommonWebAcl construct.

        Args:
            scope: CDK construct scope
            construct_id: Unique identifier for this construct
            props: Allow-list configuration for the Web ACL
        """
        super().__init__(scope, construct_id)

        self._construct_id = construct_id
        self._waf_scope = WebAclScope(props.scope).value
        self.rule_set: RuleSet = assemble_rule_set(props, construct_id)
        # An explicitly empty IPv6 list blocks every IPv6 client.
        self.ipv6_enabled = props.allowed_ipv6_address_ranges is None or bool(
            props.allowed_ipv6_address_ranges
        )

        if self.rule_set.is_empty:
            logger.info(
                "Web ACL %s has no allow-list restrictions; all traffic is allowed",
                construct_id,
            )

        rules = [self._create_rule_property(rule) for rule in self.rule_set]

        suffix = Names.unique_id(self)
        self.web_acl = wafv2.CfnWebACL(
            self,
            f"WebAcl{construct_id}",
            default_action=wafv2.CfnWebACL.DefaultActionProperty(allow={}),
            name=f"WebAcl-{suffix}",
            scope=self._waf_scope,
            visibility_config=wafv2.CfnWebACL.VisibilityConfigProperty(
                cloud_watch_metrics_enabled=True,
                sampled_requests_enabled=True,
                metric_name=f"WebAcl-{suffix}",
            ),
            rules=rules,
        )

        self.web_acl_arn = self.web_acl.attr_arn

    def _create_rule_property(self, rule: BlockRule) -> wafv2.CfnWebACL.RuleProperty:
        """
        Render a block rule into a WAF rule property.

        Args:
            rule: Assembled block rule

        Returns:
            Configured WAF rule property
        """
        return wafv2.CfnWebACL.RuleProperty(
            name=rule.name,
            priority=rule.priority,
            action=wafv2.CfnWebACL.RuleActionProperty(block={}),
            visibility_config=wafv2.CfnWebACL.VisibilityConfigProperty(
                sampled_requests_enabled=True,
                cloud_watch_metrics_enabled=True,
                metric_name=rule.metric_name,
            ),
            statement=wafv2.CfnWebACL.StatementProperty(
                not_statement=wafv2.CfnWebACL.NotStatementProperty(
                    statement=self._create_match_statement(rule.match),
                ),
            ),
        )

    def _create_match_statement(
        self, match: RuleMatch
    ) -> wafv2.CfnWebACL.StatementProperty:
        """
        Create the statement a request must satisfy to escape the block.

        Args:
            match: Network or geo match of the rule

        Returns:
            OR of IP set references, or a geo match statement
        """
        if isinstance(match, NetworkMatch):
            return wafv2.CfnWebACL.StatementProperty(
                or_statement=wafv2.CfnWebACL.OrStatementProperty(
                    statements=self._create_ip_set_statements(match),
                ),
            )
        if isinstance(match, GeoMatch):
            return wafv2.CfnWebACL.StatementProperty(
                geo_match_statement=wafv2.CfnWebACL.GeoMatchStatementProperty(
                    country_codes=list(match.country_codes),
                ),
            )
        raise TypeError(f"Unsupported rule match: {match!r}")

    def _create_ip_set_statements(
        self, match: NetworkMatch
    ) -> List[wafv2.CfnWebACL.StatementProperty]:
        """
        Create the IPv4 and IPv6 sets and statements referencing them.

        Args:
            match: Resolved addresses for both families

        Returns:
            IP set reference statements, IPv4 first
        """
        ipv4_set = wafv2.CfnIPSet(
            self,
            f"IPv4Set{self._construct_id}",
            ip_address_version="IPV4",
            scope=self._waf_scope,
            addresses=list(match.ipv4_addresses),
        )
        ipv6_set = wafv2.CfnIPSet(
            self,
            f"IPv6Set{self._construct_id}",
            ip_address_version="IPV6",
            scope=self._waf_scope,
            addresses=list(match.ipv6_addresses),
        )

        return [
            wafv2.CfnWebACL.StatementProperty(
                ip_set_reference_statement=wafv2.CfnWebACL.IPSetReferenceStatementProperty(
                    arn=ip_set.attr_arn,
                ),
            )
            for ip_set in (ipv4_set, ipv6_set)
        ]
