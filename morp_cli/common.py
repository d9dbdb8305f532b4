"""Service construction and error reporting shared by command groups."""
import json
import sys

import click

from morp import MorpConfig, MorpService
from morp.core.errors import ConflictError, MorpError, NotFound, ValidationError

from .output import error_box

DEFAULT_LEDGER_DIR = ".morp"


def get_service(ctx: click.Context, transfer=None) -> MorpService:
    """Build a MorpService from the environment, persisting under --ledger-dir."""
    config = MorpConfig.from_env()
    config.ledger_dir = ctx.obj.get("ledger_dir") or config.ledger_dir or DEFAULT_LEDGER_DIR
    return MorpService(config, transfer=transfer)


def parse_json_option(value: str | None, name: str) -> dict:
    if not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint=name)
    if not isinstance(data, dict):
        raise click.BadParameter("must be a JSON object", param_hint=name)
    return data


def fail(title: str, error: MorpError) -> None:
    """Report a MORP error and exit. Caller errors exit 1, integrity and config 2."""
    error_box(f"{title}: {type(error).__name__}", str(error))
    if isinstance(error, (ValidationError, ConflictError, NotFound)):
        sys.exit(1)
    sys.exit(2)
