#!/usr/bin/env python3
"""
CLI tool for the LiteLLM resource reconciler
Applies declared models and credentials to a LiteLLM proxy
"""

import asyncio
import json
import logging

import click
import yaml
from tabulate import tabulate

from client import LiteLLMClient
from config import get_config
from errors import ResourceError
from resources import HANDLERS, get_handler
from upsert import UpsertOrchestrator

SECRET_FIELDS = {
    "model_api_key",
    "aws_access_key_id",
    "aws_secret_access_key",
    "vertex_credentials",
    "credential_values",
}


def _load_document(filename):
    """Read a resource document from a YAML/JSON file"""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict) or "kind" not in data:
        raise click.BadParameter("document must be a mapping with a 'kind' field")
    return data


def _orchestrator(kind):
    cfg = get_config()
    try:
        handler = get_handler(kind, LiteLLMClient(cfg.client))
    except ValueError as e:
        raise click.BadParameter(str(e))
    return UpsertOrchestrator(handler, retry=cfg.retry_for(kind))


def _fields_table(data):
    rows = []
    for key, value in sorted(data.to_dict().items()):
        if key in SECRET_FIELDS and value:
            value = "<sensitive>"
        rows.append([key, value])
    return tabulate(rows, headers=["FIELD", "VALUE"])


def _fail(e):
    click.echo(f"Error: {e}", err=True)
    raise SystemExit(1)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """LiteLLM reconciler CLI - declarative models and credentials"""
    logging.basicConfig(
        level=(log_level or get_config().logging.level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.option("--update", is_flag=True, help="Update the resource named by 'id'")
def apply(filename, update):
    """Create or update a resource from a YAML/JSON file"""
    doc = _load_document(filename)
    orchestrator = _orchestrator(doc["kind"])
    try:
        data = orchestrator.handler.new_data(doc.get("spec") or {}, doc.get("id", ""))
    except KeyError as e:
        raise click.BadParameter(f"unknown field in spec: {e.args[0]}")

    if update and not data.id:
        raise click.BadParameter("--update requires an 'id' in the document")

    try:
        resource_id = asyncio.run(orchestrator.upsert(data, is_update=update))
    except ResourceError as e:
        _fail(e)

    click.echo(f"{doc['kind'].capitalize()} {'updated' if update else 'created'}!")
    click.echo(f"ID: {resource_id}")
    click.echo(_fields_table(data))


@cli.command()
@click.argument("kind", type=click.Choice(sorted(HANDLERS)))
@click.argument("resource_id")
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
def get(kind, resource_id, output):
    """Read a resource once"""
    orchestrator = _orchestrator(kind)
    data = orchestrator.handler.new_data(resource_id=resource_id)

    try:
        asyncio.run(orchestrator.handler.read(data))
    except ResourceError as e:
        _fail(e)

    if not data.id:
        _fail(f"{kind} {resource_id} not found")

    if output == "json":
        click.echo(json.dumps(data.to_dict(), indent=2))
    elif output == "yaml":
        click.echo(yaml.dump(data.to_dict(), default_flow_style=False))
    else:
        click.echo(_fields_table(data))


@cli.command()
@click.argument("kind", type=click.Choice(sorted(HANDLERS)))
@click.argument("resource_id")
@click.confirmation_option(prompt="Are you sure you want to delete this resource?")
def delete(kind, resource_id):
    """Delete a resource"""
    orchestrator = _orchestrator(kind)
    data = orchestrator.handler.new_data(resource_id=resource_id)

    try:
        asyncio.run(orchestrator.delete(data))
    except ResourceError as e:
        _fail(e)

    click.echo(f"{kind.capitalize()} {resource_id} deleted")


if __name__ == "__main__":
    cli()
