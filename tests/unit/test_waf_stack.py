import aws_cdk as core
import aws_cdk.assertions as assertions
from aws_cdk.assertions import Match

from lib.utils.web_acl_rules import WebAclScope
from stacks.waf_stack import WafStack


def test_frontend_waf_stack_outputs_web_acl_arn():
    app = core.App()
    stack = WafStack(
        app,
        "FrontendWafStack",
        env=core.Environment(region="us-east-1"),
        allowed_ipv4_ranges=["10.0.0.0/8"],
        allowed_country_codes=["US"],
    )
    template = assertions.Template.from_stack(stack)

    template.resource_count_is("AWS::WAFv2::WebACL", 1)
    template.resource_count_is("AWS::WAFv2::IPSet", 2)
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {
            "Scope": "CLOUDFRONT",
            "Rules": [
                Match.object_like({"Priority": 1}),
                Match.object_like({"Priority": 2}),
            ],
        },
    )
    template.has_output(
        "WebAclArn",
        {
            "Description": "ARN of the WAF Web ACL",
            "Value": {"Fn::GetAtt": [Match.any_value(), "Arn"]},
        },
    )
    assert stack.ipv6_enabled


def test_regional_stack_without_allow_lists():
    app = core.App()
    stack = WafStack(app, "PublishedApiWafStack", web_acl_scope=WebAclScope.REGIONAL)
    template = assertions.Template.from_stack(stack)

    template.resource_count_is("AWS::WAFv2::IPSet", 0)
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {"Scope": "REGIONAL", "DefaultAction": {"Allow": {}}},
    )
    assert len(stack.web_acl.rule_set) == 0
