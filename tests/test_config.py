import hashlib
from dataclasses import dataclass

import dacite
import pytest

from infra_sitepipe.lib.config import (
    HierarchicalConfig,
    SitepipeConfigException,
    config_from_dict,
    get_sitepipe_env,
    get_sysenv,
)
from infra_sitepipe.lib.config import core
from infra_sitepipe.lib.s3 import generate_bucket_name
from infra_sitepipe.lib.utils import kebab_from_snake, run_once, to_outputs
from infra_sitepipe.modules.aws.static_site.config import StaticSiteArgs
from infra_sitepipe.modules.aws.static_site.types import ComputeType, PublicReadMechanism
from infra_sitepipe.module_manager.discover_modules import discover_modules


@pytest.fixture
def tiers(tmp_path):
    (tmp_path / ".git").mkdir()
    (tmp_path / "Sitepipe.common.yaml").write_text("team: web\npurpose: sandbox\ntag_namespace: acme\n")
    sysenv = tmp_path / "aws" / "sp-aws-us-west-2-prod"
    sysenv.mkdir(parents=True)
    (sysenv / "Sitepipe.common.yaml").write_text("purpose: prod\nphase: live\n")
    return sysenv


def test_nearest_config_wins(tiers):
    config = HierarchicalConfig(start=tiers)

    assert config["purpose"] == "prod"
    assert config["phase"] == "live"
    assert config["team"] == "web"
    assert config["tag_namespace"] == "acme"


def test_walk_is_limited(tiers):
    config = HierarchicalConfig(start=tiers, limit=1)

    assert "team" not in config
    assert config["purpose"] == "prod"


def test_missing_config_is_empty(tmp_path):
    empty = tmp_path / "empty"
    (empty / ".git").mkdir(parents=True)

    assert dict(HierarchicalConfig(start=empty)) == {}


def test_require(tiers):
    config = HierarchicalConfig(start=tiers)

    assert config.require("team") == "web"
    with pytest.raises(SitepipeConfigException, match="'namespace'"):
        config.require("namespace")


def test_env_is_loaded_from_root(sitepipe_env):
    assert get_sitepipe_env().require("team") == "web"
    assert get_sitepipe_env() is get_sitepipe_env()


def test_sysenv_override():
    assert get_sysenv() == "sp-aws-us-west-2-sandbox-dev"


def test_sysenv_from_parts(sitepipe_env, monkeypatch):
    (sitepipe_env / "Sitepipe.common.yaml").write_text("namespace: sp\npurpose: sandbox\nphase: dev\n")
    get_sitepipe_env.reset()
    monkeypatch.setattr(core, "get_provider_and_region", lambda: ("aws", "eu-west-1"))

    assert get_sysenv() == "sp-aws-eu-west-1-sandbox-dev"


def test_config_from_dict_casts_enums():
    args = config_from_dict(
        {
            "name": "docs",
            "public_read": "acl",
            "website": {"index_document": "index.htm", "error_document": None},
            "pipeline": {
                "artifact_bucket": "codepipeline-us-west-2-docs",
                "source": {"owner": "acme", "repo": "docs-site", "branch": "release"},
                "build": {"compute_type": "BUILD_GENERAL1_LARGE", "timeout_minutes": 20},
            },
        },
        StaticSiteArgs,
    )

    assert args.public_read == PublicReadMechanism.ACL
    assert args.website.error_document is None
    assert args.pipeline.source.branch == "release"
    assert args.pipeline.build.compute_type == ComputeType.LARGE
    assert args.pipeline.build.buildspec == "buildspec.yml"


def test_config_from_dict_is_strict():
    data = {
        "name": "docs",
        "pipeline": {"artifact_bucket": "codepipeline-us-west-2-docs", "source": {"owner": "acme", "repo": "x"}},
        "cdn": True,
    }

    with pytest.raises(dacite.UnexpectedDataError):
        config_from_dict(data, StaticSiteArgs)


def test_config_from_dict_rejects_unknown_mechanism():
    data = {
        "name": "docs",
        "public_read": "website",
        "pipeline": {"artifact_bucket": "codepipeline-us-west-2-docs", "source": {"owner": "acme", "repo": "x"}},
    }

    with pytest.raises(ValueError):
        config_from_dict(data, StaticSiteArgs)


def test_tags(monkeypatch):
    from infra_sitepipe.lib import tags

    monkeypatch.setattr(tags, "get_stack", lambda: "static-site")
    monkeypatch.setattr(tags, "get_project", lambda: "sitepipe")

    assert tags.get_tags("static-site", "bucket", "docs") == {
        "Name": "static-site-bucket-docs",
        "sitepipe:sysenv": "sp-aws-us-west-2-sandbox-dev",
        "sitepipe:service": "static-site",
        "sitepipe:role": "bucket",
        "sitepipe:group": "docs",
        "sitepipe:team": "web",
        "sitepipe:createdby": "pulumi",
        "sitepipe:stack": "static-site",
        "sitepipe:project": "sitepipe",
        "sitepipe:purpose": "sandbox",
        "sitepipe:phase": "dev",
    }
    assert tags.get_tags("static-site", "pipeline")["sitepipe:group"] == "main"


def test_bucket_name():
    sysenv_hash = hashlib.md5(b"sp-aws-us-west-2-sandbox-dev").hexdigest()[-5:]

    assert generate_bucket_name("docs") == f"sandbox-dev-{sysenv_hash}-docs"
    assert len(generate_bucket_name("d" * 80)) == 63


def test_discover_modules():
    modules = discover_modules()

    assert list(modules) == ["aws"]
    assert modules["aws"]["static-site"].name == "static_site"
    assert modules["aws"]["static-site"].path == ".modules.aws.static_site"


def test_case_conversion():
    assert kebab_from_snake("static_site") == "static-site"


def test_run_once_reset():
    calls = []

    @run_once
    def load():
        calls.append(1)
        return len(calls)

    assert load() == load() == 1
    load.reset()
    assert load() == 2


def test_exports_to_outputs():
    @dataclass
    class Exports:
        mechanism: PublicReadMechanism
        names: tuple

    assert to_outputs(Exports(PublicReadMechanism.NONE, ("a", "b"))) == {"mechanism": "none", "names": ["a", "b"]}
