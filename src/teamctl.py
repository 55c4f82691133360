#!/usr/bin/env python3
"""
CLI tool for the GitHub Team reconciler.
Runs a single reconciliation pass for Team manifests in YAML/JSON files.
"""

import asyncio
import json
import logging
import sys

import click
import yaml
from tabulate import tabulate

from config import get_config
from reconcilers.base import ReconcilerError
from reconcilers.team import TeamConnector, setup_team
from resources import ManagedResource, resource_from_manifest

logger = logging.getLogger(__name__)


def load_resources(filenames):
    """Load managed resources from YAML (multi-document) or JSON files."""
    resources = []
    for filename in filenames:
        with open(filename, "r") as f:
            if filename.endswith(".json"):
                documents = [json.load(f)]
            else:
                documents = [d for d in yaml.safe_load_all(f) if d is not None]

        for document in documents:
            try:
                resources.append(resource_from_manifest(document))
            except ValueError as e:
                raise click.ClickException(f"{filename}: {e}")
    return resources


def _org(resource: ManagedResource) -> str:
    for_provider = getattr(resource, "for_provider", None)
    return for_provider.org if for_provider else ""


def _yes_no(value) -> str:
    if value is None:
        return "-"
    return "yes" if value else "no"


def result_rows(resources, results):
    rows = []
    for resource, result in zip(resources, results):
        observation = result.observation
        rows.append(
            [
                resource.name,
                _org(resource),
                _yes_no(observation.resource_exists if observation else None),
                _yes_no(
                    observation.resource_up_to_date
                    if observation and observation.resource_exists
                    else None
                ),
                result.action.value,
                "✓" if result.success else f"✗ {result.message}",
            ]
        )
    return rows


async def _reconcile_all(resources, deleting: bool = False):
    reconciler = setup_team(get_config())
    results = []
    for resource in resources:
        result = await reconciler.reconcile(resource, deleting=deleting)
        if not result.success:
            logger.error(f"{resource.kind} {resource.name}: {result.message}")
        results.append(result)
    return results


async def _observe_all(resources):
    connector = TeamConnector(get_config())
    observed = []
    for resource in resources:
        try:
            external = await connector.connect(resource)
            observation = await external.observe(resource)
            resource.apply_observation(observation)
            observed.append((resource, observation, None))
        except ReconcilerError as e:
            logger.error(f"{resource.kind} {resource.name}: {e}")
            observed.append((resource, None, str(e)))
    return observed


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
def cli(log_level):
    """GitHub Team reconciler CLI - declarative management of organization teams"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("filenames", nargs=-1, required=True, type=click.Path(exists=True))
def apply(filenames):
    """Create or update the teams declared in the given files"""
    resources = load_resources(filenames)
    results = asyncio.run(_reconcile_all(resources))

    headers = ["Name", "Org", "Exists", "Up To Date", "Action", "Result"]
    rows = result_rows(resources, results)
    click.echo(tabulate(rows, headers=headers, tablefmt="grid"))

    if not all(r.success for r in results):
        sys.exit(1)


@cli.command()
@click.argument("filenames", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--output", "-o", type=click.Choice(["table", "json"]), default="table"
)
def observe(filenames, output):
    """Show whether the declared teams exist and are up to date"""
    resources = load_resources(filenames)
    observed = asyncio.run(_observe_all(resources))

    if output == "json":
        data = [
            {
                "name": resource.name,
                "kind": resource.kind,
                "org": _org(resource),
                "exists": observation.resource_exists if observation else None,
                "up_to_date": (
                    observation.resource_up_to_date
                    if observation and observation.resource_exists
                    else None
                ),
                "node_id": observation.remote_id if observation else None,
                "error": error,
            }
            for resource, observation, error in observed
        ]
        click.echo(json.dumps(data, indent=2))
    else:
        headers = ["Name", "Org", "Exists", "Up To Date", "Node ID", "Error"]
        rows = []
        for resource, observation, error in observed:
            exists = observation.resource_exists if observation else None
            rows.append(
                [
                    resource.name,
                    _org(resource),
                    _yes_no(exists),
                    _yes_no(observation.resource_up_to_date if exists else None),
                    (observation.remote_id if observation else None) or "-",
                    error or "",
                ]
            )
        click.echo(tabulate(rows, headers=headers, tablefmt="grid"))

    if any(error for _, _, error in observed):
        sys.exit(1)


@cli.command()
@click.argument("filenames", nargs=-1, required=True, type=click.Path(exists=True))
@click.confirmation_option(prompt="Are you sure you want to delete these teams?")
def delete(filenames):
    """Delete the teams declared in the given files"""
    resources = load_resources(filenames)
    results = asyncio.run(_reconcile_all(resources, deleting=True))

    headers = ["Name", "Org", "Exists", "Up To Date", "Action", "Result"]
    rows = result_rows(resources, results)
    click.echo(tabulate(rows, headers=headers, tablefmt="grid"))

    if not all(r.success for r in results):
        sys.exit(1)


if __name__ == "__main__":
    cli()
