import aws_cdk as core
import aws_cdk.assertions as assertions
from aws_cdk.assertions import Match

from lib.constructs.common_web_acl import CommonWebAcl, CommonWebAclProps
from lib.utils.web_acl_rules import AllowListConfig, WebAclScope


def _synth(props):
    app = core.App()
    stack = core.Stack(app, "TestStack")
    web_acl = CommonWebAcl(stack, "WebAcl", props)
    return web_acl, assertions.Template.from_stack(stack)


def _ip_set_ref(logical_id_pattern):
    return {
        "IPSetReferenceStatement": {
            "Arn": {
                "Fn::GetAtt": [Match.string_like_regexp(logical_id_pattern), "Arn"]
            }
        }
    }


def _web_acl_rules(template):
    (web_acl,) = template.find_resources("AWS::WAFv2::WebACL").values()
    return web_acl["Properties"].get("Rules", [])


def test_no_allow_lists_allows_everything():
    _, template = _synth(CommonWebAclProps(scope=WebAclScope.REGIONAL))

    template.resource_count_is("AWS::WAFv2::IPSet", 0)
    template.resource_count_is("AWS::WAFv2::WebACL", 1)
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {
            "DefaultAction": {"Allow": {}},
            "Scope": "REGIONAL",
            "Name": Match.string_like_regexp("^WebAcl-"),
            "VisibilityConfig": {
                "CloudWatchMetricsEnabled": True,
                "SampledRequestsEnabled": True,
                "MetricName": Match.string_like_regexp("^WebAcl-"),
            },
        },
    )
    assert _web_acl_rules(template) == []


def test_ipv4_only_creates_universal_ipv6_set():
    _, template = _synth(
        CommonWebAclProps(
            scope=WebAclScope.REGIONAL,
            allowed_ipv4_address_ranges=["10.0.0.0/8"],
        )
    )

    template.resource_count_is("AWS::WAFv2::IPSet", 2)
    template.has_resource_properties(
        "AWS::WAFv2::IPSet",
        {
            "IPAddressVersion": "IPV4",
            "Scope": "REGIONAL",
            "Addresses": ["10.0.0.0/8"],
        },
    )
    template.has_resource_properties(
        "AWS::WAFv2::IPSet",
        {
            "IPAddressVersion": "IPV6",
            "Scope": "REGIONAL",
            "Addresses": ["::/1", "8000::/1"],
        },
    )
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {
            "Rules": [
                {
                    "Name": "IpSetRuleWebAcl",
                    "Priority": 1,
                    "Action": {"Block": {}},
                    "VisibilityConfig": {
                        "SampledRequestsEnabled": True,
                        "CloudWatchMetricsEnabled": True,
                        "MetricName": "IpSetRuleWebAcl",
                    },
                    "Statement": {
                        "NotStatement": {
                            "Statement": {
                                "OrStatement": {
                                    "Statements": [
                                        _ip_set_ref("IPv4SetWebAcl"),
                                        _ip_set_ref("IPv6SetWebAcl"),
                                    ]
                                }
                            }
                        }
                    },
                }
            ]
        },
    )


def test_ipv6_only_creates_universal_ipv4_set():
    _, template = _synth(
        CommonWebAclProps(
            scope=WebAclScope.CLOUDFRONT,
            allowed_ipv6_address_ranges=["2001:db8::/32"],
        )
    )

    template.has_resource_properties(
        "AWS::WAFv2::IPSet",
        {
            "IPAddressVersion": "IPV4",
            "Scope": "CLOUDFRONT",
            "Addresses": ["0.0.0.0/1", "128.0.0.0/1"],
        },
    )
    template.has_resource_properties(
        "AWS::WAFv2::IPSet",
        {
            "IPAddressVersion": "IPV6",
            "Scope": "CLOUDFRONT",
            "Addresses": ["2001:db8::/32"],
        },
    )


def test_country_only_rule_keeps_priority_two():
    _, template = _synth(
        CommonWebAclProps(
            scope=WebAclScope.REGIONAL,
            allowed_country_codes=["US", "CA"],
        )
    )

    template.resource_count_is("AWS::WAFv2::IPSet", 0)
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {
            "Rules": [
                {
                    "Name": "CountryCodeRuleWebAcl",
                    "Priority": 2,
                    "Action": {"Block": {}},
                    "VisibilityConfig": {"MetricName": "CountryCodeRuleWebAcl"},
                    "Statement": {
                        "NotStatement": {
                            "Statement": {
                                "GeoMatchStatement": {"CountryCodes": ["US", "CA"]}
                            }
                        }
                    },
                }
            ]
        },
    )


def test_all_allow_lists_render_rules_in_priority_order():
    _, template = _synth(
        CommonWebAclProps(
            scope=WebAclScope.CLOUDFRONT,
            allowed_ipv4_address_ranges=["10.0.0.0/8"],
            allowed_ipv6_address_ranges=["2001:db8::/32"],
            allowed_country_codes=["JP"],
        )
    )

    rules = _web_acl_rules(template)

    assert [rule["Priority"] for rule in rules] == [1, 2]
    assert [rule["Name"] for rule in rules] == [
        "IpSetRuleWebAcl",
        "CountryCodeRuleWebAcl",
    ]
    template.has_resource_properties(
        "AWS::WAFv2::WebACL",
        {"Scope": "CLOUDFRONT", "DefaultAction": {"Allow": {}}},
    )


def test_accepts_allow_list_config_and_exposes_arn():
    web_acl, _ = _synth(
        AllowListConfig(
            scope=WebAclScope.EDGE,
            allowed_ipv4_address_ranges=["10.0.0.0/8"],
        )
    )

    assert core.Token.is_unresolved(web_acl.web_acl_arn)
    assert len(web_acl.rule_set) == 1
    assert web_acl.ipv6_enabled


def test_empty_ipv6_list_disables_ipv6():
    web_acl, template = _synth(
        CommonWebAclProps(
            scope=WebAclScope.REGIONAL,
            allowed_ipv4_address_ranges=["10.0.0.0/8"],
            allowed_ipv6_address_ranges=[],
        )
    )

    assert not web_acl.ipv6_enabled
    template.resource_count_is("AWS::WAFv2::IPSet", 2)
