"""
WAF Stack Implementation.

This module deploys a common Web ACL restricting access to allowed networks
and countries. The frontend instance is deployed in us-east-1 with CLOUDFRONT
scope so it can be attached to a CloudFront distribution; a REGIONAL instance
protects published APIs.
"""

import logging
from typing import List, Optional

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from lib.constructs.common_web_acl import CommonWebAcl, CommonWebAclProps
from lib.utils.web_acl_rules import WebAclScope

logger = logging.getLogger(__name__)


class WafStack(Stack):
    """
    Stack holding a single allow-list Web ACL.

    Attributes:
        web_acl: The common Web ACL construct
        web_acl_arn: Output carrying the ARN of the created Web ACL
        ipv6_enabled: Boolean indicating if IPv6 clients can be served
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        web_acl_scope: WebAclScope = WebAclScope.CLOUDFRONT,
        allowed_ipv4_ranges: Optional[List[str]] = None,
        allowed_ipv6_ranges: Optional[List[str]] = None,
        allowed_country_codes: Optional[List[str]] = None,
        **kwargs,
    ) -> None:
        """
        Initialize the WAF stack.

        Args:
            scope: CDK scope for resource creation
            construct_id: Unique identifier for the stack
            web_acl_scope: REGIONAL or CLOUDFRONT
            allowed_ipv4_ranges: Allowed IPv4 CIDR ranges, None for no restriction
            allowed_ipv6_ranges: Allowed IPv6 CIDR ranges, None for no restriction
            allowed_country_codes: Allowed ISO country codes, None for no restriction
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        self.web_acl = CommonWebAcl(
            self,
            "WebAcl",
            CommonWebAclProps(
                scope=web_acl_scope,
                allowed_ipv4_address_ranges=allowed_ipv4_ranges,
                allowed_ipv6_address_ranges=allowed_ipv6_ranges,
                allowed_country_codes=allowed_country_codes,
            ),
        )
        self.ipv6_enabled = self.web_acl.ipv6_enabled

        logger.info(
            "%s: %s Web ACL with %d block rule(s)",
            construct_id,
            WebAclScope(web_acl_scope).value,
            len(self.web_acl.rule_set),
        )

        self.web_acl_arn = CfnOutput(
            self,
            "WebAclArn",
            value=self.web_acl.web_acl_arn,
            description="ARN of the WAF Web ACL",
        )
