"""CLI for Vaultbox key management."""
import base64
import json
import os
import sys

import click

from vaultbox.dependencies import build_store, load_master_secret
from vaultbox.domain.crypto.field_cipher import (
    AuthenticationFailedError,
    ConfigurationError,
    FieldCipher,
    MalformedBlobError,
)
from vaultbox.domain.crypto.rotation import ReencryptionService
from vaultbox.settings import get_settings


@click.group()
def cli():
    """Vaultbox CLI."""
    pass


@cli.command()
@click.option("--bytes", "num_bytes", default=32, type=int, help="Random bytes before encoding (default: 32)")
def keygen(num_bytes: int):
    """Print a fresh random master key suitable for MASTER_ENCRYPTION_KEY."""
    if num_bytes < 16:
        click.echo("Error: --bytes must be at least 16", err=True)
        sys.exit(1)
    click.echo(base64.b64encode(os.urandom(num_bytes)).decode("ascii"))


@cli.command("check-blob")
@click.argument("blob")
def check_blob(blob: str):
    """Check that BLOB decrypts under the configured master key.

    Never prints the plaintext, only its length.
    """
    try:
        cipher = FieldCipher(load_master_secret(get_settings()))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    try:
        plaintext = cipher.decrypt(blob)
    except MalformedBlobError as e:
        click.echo(f"✗ Malformed blob: {e}", err=True)
        sys.exit(1)
    except AuthenticationFailedError:
        click.echo("✗ Authentication failed (wrong key or tampered blob)", err=True)
        sys.exit(1)

    click.echo(f"✓ Blob OK ({len(plaintext)} characters)")


def _master_from_env(var: str) -> str:
    value = os.getenv(var)
    if not value:
        raise click.UsageError(f"Environment variable {var} is not set")
    return value


@cli.command()
@click.option("--old-key-env", required=True, help="Env var holding the current master key")
@click.option("--new-key-env", required=True, help="Env var holding the replacement master key")
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text")
def reencrypt(old_key_env: str, new_key_env: str, fmt: str):
    """Re-encrypt every stored field from the old master key to the new one."""
    old_cipher = FieldCipher(_master_from_env(old_key_env))
    new_cipher = FieldCipher(_master_from_env(new_key_env))

    store = build_store(get_settings())
    scanned, rotated, failed = ReencryptionService(store, old_cipher, new_cipher).run()

    if fmt == "json":
        click.echo(json.dumps({"scanned": scanned, "rotated": rotated, "failed": failed}))
    else:
        click.echo(f"Scanned {scanned} documents, rotated {rotated} fields, {failed} failed")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
