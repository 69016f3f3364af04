"""CLI entry point for api-tester."""

import json
import logging
from pathlib import Path

import click

from api_tester.config import import_object, load_settings
from api_tester.dispatch.models import AuthDirective, UploadedFile
from api_tester.errors import InvalidInvocation
from api_tester.ledger import InvocationLedger
from api_tester.tester import ApiTester


def _load_app(path: str):
    """Import the ASGI application named by a 'module:attr' string."""
    try:
        return import_object(path)
    except ImportError as e:
        raise click.BadParameter(str(e), param_hint="APP") from e


def _split_pairs(pairs: tuple[str, ...], option: str) -> list[tuple[str, str]]:
    result = []
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint=option)
        result.append((name, value))
    return result


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Tester: list an app's API routes and call them in-process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@main.command()
@click.argument("app_path", metavar="APP")
@click.option("--prefix", default=None, help="Only list routes whose URI starts with this prefix (default: api).")
@click.option("--sort", "sort_field", default=None, help="Sort by host, method, uri, name, handler or middleware.")
@click.option("--json", "as_json", is_flag=True, help="Print descriptors as JSON.")
@click.option("--config", type=click.Path(exists=True, path_type=Path), default=None, help="YAML settings file.")
def routes(app_path: str, prefix: str | None, sort_field: str | None, as_json: bool, config: Path | None):
    """List API routes of APP (module:attr)."""
    tester = ApiTester(_load_app(app_path), load_settings(config, prefix=prefix))
    try:
        descriptors = tester.routes(sort=sort_field)
    except InvalidInvocation as e:
        raise click.UsageError(str(e)) from e

    if as_json:
        click.echo(json.dumps([d.model_dump() for d in descriptors], indent=2, ensure_ascii=False))
        return

    for d in descriptors:
        click.echo(f"{d.method:<7} {d.uri}  {d.handler}")
        for p in d.parameters:
            attrs = ", ".join(f"{k}={v}" for k, v in p.attributes.items())
            click.echo(f"        - {p.name}" + (f" ({attrs})" if attrs else ""))
    click.echo(f"{len(descriptors)} routes.")


@main.command()
@click.argument("app_path", metavar="APP")
@click.argument("method")
@click.argument("uri")
@click.option("-p", "--param", "params", multiple=True, help="Request parameter as name=value. Repeatable.")
@click.option("-f", "--file", "files", multiple=True, help="Upload as name=path. Repeatable.")
@click.option(
    "--auth-type",
    default="no_auth",
    type=click.Choice(["no_auth", "basic_auth", "bearer_token"]),
    help="Authorization header to send.",
)
@click.option("--username", default=None, help="Basic auth username.")
@click.option("--password", default=None, help="Basic auth password.")
@click.option("--token", default=None, help="Bearer token.")
@click.option("--user", default=None, help="Act as this user id.")
@click.option("--base-url", default=None, help="Base URL for relative URIs.")
@click.option("--ledger", type=click.Path(path_type=Path), default=None, help="Record the call in this ledger file.")
@click.option("--config", type=click.Path(exists=True, path_type=Path), default=None, help="YAML settings file.")
def call(
    app_path: str,
    method: str,
    uri: str,
    params: tuple[str, ...],
    files: tuple[str, ...],
    auth_type: str,
    username: str | None,
    password: str | None,
    token: str | None,
    user: str | None,
    base_url: str | None,
    ledger: Path | None,
    config: Path | None,
):
    """Simulate METHOD URI against APP and print the response."""
    parameters: list[tuple[str, object]] = list(_split_pairs(params, "--param"))
    for name, path in _split_pairs(files, "--file"):
        file_path = Path(path)
        if not file_path.is_file():
            raise click.BadParameter(f"No such file: {path}", param_hint="--file")
        parameters.append((name, UploadedFile(filename=file_path.name, content=file_path.read_bytes())))

    auth = AuthDirective.from_form(
        {
            "auth_type": auth_type,
            "basic_auth_username": username,
            "basic_auth_password": password,
            "bearer_token_token": token,
            "user": user,
        }
    )
    settings = load_settings(config, base_url=base_url, ledger_path=ledger)
    tester = ApiTester(_load_app(app_path), settings)
    try:
        result = tester.execute(method, uri, parameters, auth)
    except InvalidInvocation as e:
        raise click.UsageError(str(e)) from e

    click.echo(f"{result.status.code} {result.status.text}")
    click.echo(f"Message: {result.message}")
    click.echo("")
    click.echo(result.content)


@main.command()
@click.option("--ledger", required=True, type=click.Path(path_type=Path), help="Ledger file to read.")
@click.option("--limit", default=None, type=int, help="Show at most this many calls.")
def history(ledger: Path, limit: int | None):
    """Show recorded calls, newest first."""
    records = InvocationLedger(ledger).load(limit)
    for record in records:
        params = ", ".join(f"{p['name']}={p['defaultValue']}" for p in record["parameters"])
        user = f" as {record['user']}" if record.get("user") else ""
        click.echo(f"{record.get('method')} {record.get('uri')}{user}" + (f"  [{params}]" if params else ""))
    click.echo(f"{len(records)} calls.")
