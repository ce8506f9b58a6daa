from collections import Counter

import pytest

from infra_sitepipe.lib.base import IdentityStateError, MultiplePolicyError, PolicyValidationError
from infra_sitepipe.lib.graph import Reference, ResourceType
from infra_sitepipe.lib.iam import (
    Identity,
    IdentityState,
    PublicReadStatement,
    ReadStatement,
    Requirement,
    ServiceTrustStatement,
    Statement,
    TrustPolicy,
    WriteStatement,
    compose_policy,
    generate_build_identity,
    generate_pipeline_identity,
    generate_public_read_policy,
    interpolate_resource,
    validate_statement,
)
from infra_sitepipe.lib.iam.generators import BUILD_REQUIRED_ACTIONS, PIPELINE_REQUIRED_ACTIONS


def _pairs(policy) -> Counter:
    return Counter(
        (action, str(resource))
        for statement in policy.statements
        for action in statement.Action
        for resource in statement.Resource
    )


def test_build_policy_is_exactly_the_required_actions(settings):
    identity = generate_build_identity(settings, "docs-build-role", "docs-bucket", "docs-build")

    assert identity.policy.actions() == BUILD_REQUIRED_ACTIONS


def test_pipeline_policy_is_exactly_the_required_actions(settings):
    identity = generate_pipeline_identity(settings, "docs-pipeline-role", "docs-bucket", "docs-build")

    assert identity.policy.actions() == PIPELINE_REQUIRED_ACTIONS


@pytest.mark.parametrize("generate", [generate_build_identity, generate_pipeline_identity])
def test_every_grant_appears_once(settings, generate):
    identity = generate(settings, "role", "docs-bucket", "docs-build")

    assert set(_pairs(identity.policy).values()) == {1}


def test_build_policy_covers_artifacts(settings):
    policy = generate_build_identity(settings, "role", "docs-bucket", "docs-build").policy
    grants = policy.grants()

    assert ("s3:GetObject", "arn:aws:s3:::codepipeline-us-west-2-*/*") in grants
    assert ("s3:PutObject", "arn:aws:s3:::codepipeline-us-west-2-*/*") in grants
    assert ("s3:DeleteObject", "arn:aws:s3:::codepipeline-us-west-2-*/*") not in grants
    assert ("logs:PutLogEvents", "arn:aws:logs:us-west-2:123456789012:log-group:/aws/codebuild/docs-build") in grants


def test_pipeline_policy_targets_the_build_project(settings):
    policy = generate_pipeline_identity(settings, "role", "docs-bucket", "docs-build").policy

    assert ("codebuild:StartBuild", "${docs-build.arn}") in policy.grants()
    assert ("s3:GetBucketVersioning", "arn:aws:s3:::codepipeline-us-west-2-*") in policy.grants()


def test_compose_folds_actions_sharing_resources():
    site_objects = Reference("site", "arn", suffix="/*")
    artifacts = "arn:aws:s3:::codepipeline-us-west-2-*/*"

    policy = compose_policy(
        "build",
        [
            Requirement({"s3:GetObject", "s3:PutObject"}, [site_objects]),
            Requirement({"s3:GetObject"}, [artifacts]),
            Requirement({"s3:DeleteObject", "s3:PutObject"}, [site_objects]),
        ],
    )

    assert policy.name == "build"
    assert [(type(s), s.Action, s.Resource) for s in policy.statements] == [
        (ReadStatement, ("s3:GetObject",), (site_objects, artifacts)),
        (WriteStatement, ("s3:DeleteObject", "s3:PutObject"), (site_objects,)),
    ]


def test_compose_is_order_independent():
    a = Requirement({"logs:CreateLogStream", "logs:PutLogEvents"}, ["arn:aws:logs:us-west-2:1:log-group:x"])
    b = Requirement({"s3:ListBucket"}, ["arn:aws:s3:::bucket"])

    assert compose_policy("p", [a, b]).to_dict() == compose_policy("p", [b, a]).to_dict()


def test_compose_requires_requirements():
    with pytest.raises(PolicyValidationError):
        compose_policy("empty", [])

    with pytest.raises(PolicyValidationError):
        Requirement([], ["arn:aws:s3:::bucket"])


def test_document_serialization():
    document = generate_public_read_policy("docs-bucket").to_dict()

    assert document == {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": ["s3:GetObject"],
                "Resource": [Reference("docs-bucket", "arn", suffix="/*")],
                "Principal": "*",
            }
        ],
    }


def test_trust_policy_serialization():
    assert TrustPolicy(ServiceTrustStatement("codebuild.amazonaws.com")).to_dict() == {
        "Version": "2012-10-17",
        "Statement": [
            {"Effect": "Allow", "Principal": {"Service": "codebuild.amazonaws.com"}, "Action": "sts:AssumeRole"}
        ],
    }


def test_read_statement_rejects_writes():
    with pytest.raises(PolicyValidationError):
        ReadStatement(Effect="Allow", Action=("s3:GetObject", "s3:PutObject"), Resource=("arn:aws:s3:::b/*",))

    with pytest.raises(PolicyValidationError):
        PublicReadStatement(Effect="Allow", Action=("s3:DeleteObject",), Resource=("arn:aws:s3:::b/*",))


def test_statement_shape():
    with pytest.raises(PolicyValidationError):
        Statement(Effect="Maybe", Action=("s3:GetObject",), Resource=("arn:aws:s3:::b/*",))
    with pytest.raises(PolicyValidationError):
        Statement(Effect="Allow", Action=(), Resource=("arn:aws:s3:::b/*",))
    with pytest.raises(PolicyValidationError):
        Statement(Effect="Allow", Action=("s3:GetObject",), Resource=())


@pytest.mark.parametrize(
    "actions, resource",
    [
        (("s3:GetObject",), "*"),
        (("s3:GetObject",), "arn:aws:s3:::*"),
        (("s3:GetObject",), "arn:aws:logs:us-west-2:123456789012:log-group:x"),
        (("ec2:DescribeInstances",), "arn:aws:ec2:us-west-2:123456789012:instance/i-1"),
        (("s3 GetObject",), "arn:aws:s3:::bucket/*"),
        (("s3:GetObject",), "bucket/*"),
    ],
    ids=["bare-wildcard", "unscoped-arn", "namespace-mismatch", "unknown-namespace", "bad-action", "not-an-arn"],
)
def test_invalid_statements(actions, resource):
    statement = Statement(Effect="Allow", Action=actions, Resource=(resource,))

    with pytest.raises(PolicyValidationError):
        validate_statement(statement)


def test_unscopable_actions_may_use_wildcard():
    statement = ReadStatement(Effect="Allow", Action=("logs:DescribeLogGroups",), Resource=("*",))

    validate_statement(statement)


def test_references_are_checked_against_their_target():
    statement = WriteStatement(
        Effect="Allow", Action=("codebuild:StartBuild",), Resource=(Reference("docs-bucket", "arn"),)
    )

    validate_statement(statement)
    with pytest.raises(PolicyValidationError):
        validate_statement(statement, reference_service=lambda reference: "s3")

    not_an_arn = WriteStatement(Effect="Allow", Action=("s3:PutObject",), Resource=(Reference("docs-bucket", "id"),))
    with pytest.raises(PolicyValidationError):
        validate_statement(not_an_arn)


@pytest.mark.parametrize("service", ["*", "*.amazonaws.com", "arn:aws:iam::123456789012:root", "codebuild"])
def test_trust_requires_a_single_service_principal(service):
    with pytest.raises(PolicyValidationError):
        ServiceTrustStatement(service)


def test_trust_rejects_principal_lists():
    with pytest.raises(PolicyValidationError):
        ServiceTrustStatement(["codebuild.amazonaws.com", "codepipeline.amazonaws.com"])


def test_interpolation(settings):
    assert (
        interpolate_resource(settings, "arn:{partition}:logs:{region}:{aws_account_id}:log-group:x")
        == "arn:aws:logs:us-west-2:123456789012:log-group:x"
    )
    reference = Reference("docs-bucket", "arn")
    assert interpolate_resource(settings, reference) is reference


class TestIdentity:
    def _policy(self, name="policy"):
        return compose_policy(name, [Requirement({"s3:ListBucket"}, ["arn:aws:s3:::bucket"])])

    def test_transitions(self):
        identity = Identity("role")
        assert identity.state == IdentityState.DECLARED

        identity.bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))
        assert identity.state == IdentityState.TRUST_BOUND

        identity.bind_policy(self._policy())
        assert identity.state == IdentityState.PERMISSION_BOUND

        identity.activate()
        assert identity.state == IdentityState.ACTIVE

    def test_policy_requires_trust(self):
        with pytest.raises(IdentityStateError):
            Identity("role").bind_policy(self._policy())

    def test_trust_binds_once(self):
        identity = Identity("role").bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))

        with pytest.raises(IdentityStateError):
            identity.bind_trust(ServiceTrustStatement("codepipeline.amazonaws.com"))

    def test_second_policy_is_rejected_not_merged(self):
        identity = Identity("role").bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))
        first = self._policy("first")
        identity.bind_policy(first)

        with pytest.raises(MultiplePolicyError) as e:
            identity.bind_policy(self._policy("second"))

        assert e.value.policies == ["first", "second"]
        assert identity.policy is first

    def test_activation_requires_a_policy(self):
        identity = Identity("role").bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))

        with pytest.raises(IdentityStateError):
            identity.activate()

    def test_resources_require_activation(self):
        identity = Identity("role").bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))
        identity.bind_policy(self._policy())

        with pytest.raises(IdentityStateError):
            identity.to_resources()

    def test_resources(self):
        identity = generate_build_identity_for_test()
        role, role_policy = identity.to_resources()

        assert role.name == "role"
        assert role.type == ResourceType.ROLE
        assert role_policy.name == "role-policy"
        assert role_policy.type == ResourceType.ROLE_POLICY
        assert role_policy.dependencies() == ["role"]


def generate_build_identity_for_test() -> Identity:
    return (
        Identity("role", {"team": "web"})
        .bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))
        .bind_policy(compose_policy("role-policy", [Requirement({"s3:ListBucket"}, ["arn:aws:s3:::bucket"])]))
        .activate()
    )
