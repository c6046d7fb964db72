#!/usr/bin/env python3
"""
Entry point for the Common Web ACL CDK Application.

This module controls the deployment of the WAF stacks:
- Frontend Web ACL (CLOUDFRONT scope, us-east-1)
- Published API Web ACL (REGIONAL scope), when enabled through context
"""

import logging
import os
import sys
from pathlib import Path

import aws_cdk as cdk

project_root = str(Path(__file__).parent)
sys.path.insert(0, project_root)

from lib.utils.allow_list_context import load_allow_list_config, parse_bool
from lib.utils.web_acl_rules import WebAclScope
from stacks.waf_stack import WafStack

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

app = cdk.App()

FRONTEND_ALLOW_LIST = load_allow_list_config(app.node, WebAclScope.CLOUDFRONT)
ENABLE_PUBLISHED_API_WAF = parse_bool(
    "enablePublishedApiWaf", app.node.try_get_context("enablePublishedApiWaf")
)

frontend_waf = WafStack(
    app,
    "FrontendWafStack",
    env=cdk.Environment(
        region="us-east-1",
    ),
    web_acl_scope=FRONTEND_ALLOW_LIST.scope,
    allowed_ipv4_ranges=FRONTEND_ALLOW_LIST.allowed_ipv4_address_ranges,
    allowed_ipv6_ranges=FRONTEND_ALLOW_LIST.allowed_ipv6_address_ranges,
    allowed_country_codes=FRONTEND_ALLOW_LIST.allowed_country_codes,
)

if ENABLE_PUBLISHED_API_WAF:
    PUBLISHED_API_ALLOW_LIST = load_allow_list_config(
        app.node, WebAclScope.REGIONAL, prefix="publishedApi"
    )
    WafStack(
        app,
        "PublishedApiWafStack",
        env=cdk.Environment(
            region=os.getenv("CDK_DEFAULT_REGION"),
        ),
        web_acl_scope=PUBLISHED_API_ALLOW_LIST.scope,
        allowed_ipv4_ranges=PUBLISHED_API_ALLOW_LIST.allowed_ipv4_address_ranges,
        allowed_ipv6_ranges=PUBLISHED_API_ALLOW_LIST.allowed_ipv6_address_ranges,
        allowed_country_codes=PUBLISHED_API_ALLOW_LIST.allowed_country_codes,
    )

app.synth()
