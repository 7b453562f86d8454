"""CLI entry point for api-compliance."""

import importlib
import logging
import sys
from pathlib import Path

import click

from api_compliance.checkrule import ComplianceOptions, check_compliance
from api_compliance.errors import MissingPathParameterError
from api_compliance.parser.detect import load_operations
from api_compliance.rules.naming import NamingRule, PathParamOrder
from api_compliance.uri import APIConfig, resolve_uri


def _parse_pairs(pairs: tuple[str, ...], option: str) -> dict[str, str]:
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint=option)
        result[key] = value
    return result


def _import_target(target: str) -> object:
    module_name, _, attr = target.partition(":")
    if str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))
    module = importlib.import_module(module_name)
    if not attr:
        return module
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log decorator registration and skipped checks.")
def main(verbose: bool):
    """API Compliance: check API client classes against the OpenAPI naming convention."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "swagger", "postman"]), help="Document format.")
@click.option("--order", default="declared", type=click.Choice(["declared", "template"]), help="Order of path parameters in the By... suffix.")
@click.option("--stop-word", "stop_words", multiple=True, default=("api",), show_default=True, help="Path segment ignored when naming.")
def names(doc_path: Path, fmt: str, order: str, stop_words: tuple[str, ...]):
    """Print the canonical client names for every operation in an API document."""
    rule = NamingRule(stop_words=stop_words, path_param_order=PathParamOrder(order))
    try:
        operations = load_operations(doc_path, fmt)
    except ValueError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Found {len(operations)} operations in {doc_path}.")
    for op in operations:
        method_name = rule.derive_method_name(op)
        click.echo(f"\n{op.method.upper()} {op.path}")
        click.echo(f"  method:   {method_name}")
        click.echo(f"  request:  {rule.derive_request_type_name(method_name)}")
        click.echo(f"  response: {rule.derive_response_type_name(method_name)}")
        click.echo(f"  signature: {method_name}{rule.derive_parameter_signature(op)}")


@main.command()
@click.argument("target")
@click.option("--context", "context", default=None, help="Module whose types are searched for request/response classes.")
@click.option("--no-naming", is_flag=True, help="Skip method name checks.")
@click.option("--no-types", is_flag=True, help="Skip request/response type checks.")
@click.option("--no-params", is_flag=True, help="Skip signature checks.")
@click.option("--no-root-uri", is_flag=True, help="Do not require @RootUri.")
@click.option("--require-docs", is_flag=True, help="Require a summary, description or docstring.")
@click.option("--suggestions/--no-suggestions", default=True, help="Print suggestions.")
def check(target: str, context: str | None, no_naming: bool, no_types: bool, no_params: bool,
          no_root_uri: bool, require_docs: bool, suggestions: bool):
    """Audit a client class given as MODULE:CLASS."""
    try:
        client = _import_target(target)
        module_context = _import_target(context) if context else None
    except (ImportError, AttributeError) as exc:
        raise click.ClickException(f"Cannot import {target}: {exc}")

    options = ComplianceOptions(
        enable_naming_validation=not no_naming,
        enable_type_validation=not no_types,
        enable_parameter_validation=not no_params,
        enable_root_uri_check=not no_root_uri,
        require_documentation=require_docs,
        module_context=module_context,
    )
    result = check_compliance(client, options)

    for error in result.errors:
        click.echo(f"ERROR {error}")
    if suggestions:
        for suggestion in result.suggestions:
            click.echo(f"  hint {suggestion}")

    if result.is_valid:
        click.echo(f"{target}: compliant")
    else:
        click.echo(f"{target}: {len(result.errors)} problem(s) found")
        sys.exit(1)


@main.command()
@click.argument("path")
@click.option("--root", default=None, help="Root URI prepended to the path.")
@click.option("-p", "--param", "params", multiple=True, help="Path parameter as key=value.")
@click.option("-q", "--query", "query", multiple=True, help="Query parameter as key=value.")
def resolve(path: str, root: str | None, params: tuple[str, ...], query: tuple[str, ...]):
    """Resolve a path template into a request URI."""
    config = APIConfig(
        path=path,
        root=root,
        params=_parse_pairs(params, "--param"),
        query=_parse_pairs(query, "--query"),
    )
    try:
        click.echo(resolve_uri(config))
    except MissingPathParameterError as exc:
        raise click.ClickException(str(exc))
