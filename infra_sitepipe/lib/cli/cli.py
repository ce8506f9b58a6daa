import json
import logging

import click
import yaml

from infra_sitepipe.lib.base import SitepipeException
from infra_sitepipe.lib.config import config_from_dict
from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph import ResourceType
from infra_sitepipe.lib.graph.preview import PreviewMaterializer
from infra_sitepipe.lib.graph.resolver import Resolver
from infra_sitepipe.modules.aws.static_site.config import StaticSiteArgs
from infra_sitepipe.modules.aws.static_site.declare import declare_static_site

DOCUMENT_TYPES = (ResourceType.ROLE, ResourceType.ROLE_POLICY, ResourceType.BUCKET_POLICY)


def echo_key_value(key, value):
    click.echo(click.style(f"{key}: ", fg="green", bold=True) + str(value))


@click.group()
@click.option("--debug", is_flag=True, default=False, help="Enable DEBUG logging")
def cli(debug):
    logging.basicConfig(format="[%(asctime)s %(levelname)s %(name)s]: %(message)s")

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        click.echo("Enabled debug mode!")


@cli.command()
@click.argument("config_file", type=click.File("r"))
@click.option("--region", required=True, help="AWS region the site is declared in")
@click.option("--account-id", required=True, help="AWS account id the site is declared in")
@click.option("--partition", default="aws", show_default=True, help="AWS partition")
@click.option("--bucket-name", help="Physical site bucket name. Defaults to `<name>-site`.")
def plan(config_file, region, account_id, partition, bucket_name):
    """Declare and validate a static site from CONFIG_FILE without touching AWS.

    Prints the materialization order, every policy document, design findings and the exports.
    """
    try:
        args = config_from_dict(yaml.safe_load(config_file) or {}, StaticSiteArgs)
        settings = ProviderSettings(region=region, aws_account_id=account_id, partition=partition)
        site_plan = declare_static_site(args, settings, bucket_name=bucket_name or f"{args.name}-site")
        result = Resolver(PreviewMaterializer()).apply(site_plan)
    except SitepipeException as e:
        raise click.ClickException(str(e))

    click.echo(click.style("Order", bold=True))
    for position, name in enumerate(result.order, start=1):
        click.echo(f"  {position:2}. {name} ({site_plan[name].type.value})")

    click.echo()
    click.echo(click.style("Documents", bold=True))
    for name in result.order:
        record = result.state[name]
        if record.type in DOCUMENT_TYPES:
            document = record.inputs.get("policy") or record.inputs.get("assume_role_policy")
            echo_key_value(name, json.dumps(document, indent=2, sort_keys=True))

    click.echo()
    click.echo(click.style("Findings", bold=True))
    for finding in result.findings:
        click.echo(click.style(f"  [{finding.code}] ", fg="yellow") + f"{finding.subject}: {finding.message}")
    if not result.findings:
        click.echo("  none")

    click.echo()
    click.echo(click.style("Exports", bold=True))
    for key, value in result.outputs.items():
        echo_key_value(f"  {key}", value)


def run():
    exit(cli())


if __name__ == "__main__":
    run()
