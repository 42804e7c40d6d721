"""
zkrun CLI commands: verify signed GPS runs and emit attestation journals.

Commands:
  zkrun verify           - Run the guest over an input record, write the journal
  zkrun journal          - Decode and display a journal
  zkrun simulate         - Build a signed input record from a simulated run
  zkrun key list         - List local signing keys
  zkrun key generate     - Generate (or import) a signing key
  zkrun key set-active   - Set active signer key
  zkrun key show         - Show a signer's public key and address
  zkrun version          - Show version info
"""

import json
import sys
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from zkrun.config import ENV_MAX_ELAPSED_MIN, ENV_MAX_SPEED_MPS, ENV_PRIVATE_KEY

console = Console()

zkrun_app = typer.Typer(
    name="zkrun",
    help="Verify signed GPS runs and emit tamper-evident journals",
    no_args_is_help=True,
)


def _output_json(data: Dict[str, Any], exit_code: Optional[int] = None) -> None:
    """Print structured JSON to stdout and exit.

    Exit codes:
    - 0: success (status == "ok")
    - 1: error (status == "error")
    - 2: verification rejected (status == "failed")
    - 3: bad input (missing files, malformed journal)

    Can be overridden with explicit exit_code parameter.
    """
    print(json.dumps(data, indent=2, default=str))
    if exit_code is not None:
        raise typer.Exit(exit_code)
    status = data.get("status", "ok")
    if status == "ok":
        raise typer.Exit(0)
    elif status == "failed":
        raise typer.Exit(2)
    else:
        raise typer.Exit(1)


def _bad_input(command: str, message: str, output_json: bool) -> None:
    if output_json:
        _output_json({"command": command, "status": "error", "error": message}, exit_code=3)
    console.print(f"[red]Error:[/] {message}")
    raise typer.Exit(3)


def _read_source(source: str) -> Optional[bytes]:
    from pathlib import Path

    if source == "-":
        return sys.stdin.buffer.read()
    path = Path(source)
    if not path.is_file():
        return None
    return path.read_bytes()


# ---------------------------------------------------------------------------
# verify / journal
# ---------------------------------------------------------------------------

@zkrun_app.command("verify")
def verify_cmd(
    input_path: str = typer.Argument(..., help="Input record (CBOR), or '-' for stdin"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Write journal bytes to this file"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Verify one signed run and produce its journal.

    The journal is 0x00 on rejection. Why a run was rejected is never reported.

    Exit codes:
      0 = accepted
      2 = rejected
      3 = bad input (file missing)
    """
    from pathlib import Path

    from zkrun.guest import run_guest
    from zkrun.journal import decode_journal
    from zkrun.model import Accepted

    data = _read_source(input_path)
    if data is None:
        _bad_input("verify", f"Input not found: {input_path}", output_json)

    def _write(journal: bytes) -> None:
        if out:
            Path(out).write_bytes(journal)

    journal = run_guest(lambda: data, _write)
    outcome = decode_journal(journal)
    accepted = isinstance(outcome, Accepted)

    if output_json:
        result: Dict[str, Any] = {
            "command": "verify",
            "status": "ok" if accepted else "failed",
            "accepted": accepted,
            "journal_hex": journal.hex(),
        }
        if accepted:
            result.update({
                "elapsed_seconds": outcome.elapsed_seconds,
                "blob_hash": outcome.blob_hash.hex(),
                "signer_address": "0x" + outcome.signer_address.hex(),
            })
        if out:
            result["journal_path"] = out
        _output_json(result)

    console.print()
    if accepted:
        console.print(Panel.fit(
            f"[bold green]RUN ACCEPTED[/]\n\n"
            f"Elapsed:    {outcome.elapsed_seconds}s\n"
            f"Blob hash:  {outcome.blob_hash.hex()}\n"
            f"Signer:     0x{outcome.signer_address.hex()}\n"
            f"Journal:    {len(journal)} bytes",
            title="zkrun verify",
        ))
    else:
        console.print(Panel.fit(
            "[bold red]RUN REJECTED[/]\n\n"
            "Journal:    0x00",
            title="zkrun verify",
        ))
    if out:
        console.print(f"Journal written to [bold]{out}[/]")
    console.print()

    if not accepted:
        raise typer.Exit(2)


@zkrun_app.command("journal")
def journal_cmd(
    journal_path: str = typer.Argument(..., help="Journal file, or '-' for stdin"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Decode a journal produced by zkrun verify."""
    from zkrun.journal import JournalError, decode_journal
    from zkrun.model import Accepted

    data = _read_source(journal_path)
    if data is None:
        _bad_input("journal", f"Journal not found: {journal_path}", output_json)
    try:
        outcome = decode_journal(data)
    except JournalError as e:
        _bad_input("journal", str(e), output_json)

    accepted = isinstance(outcome, Accepted)
    if output_json:
        result: Dict[str, Any] = {"command": "journal", "status": "ok", "accepted": accepted}
        if accepted:
            result.update({
                "elapsed_seconds": outcome.elapsed_seconds,
                "blob_hash": outcome.blob_hash.hex(),
                "signer_address": "0x" + outcome.signer_address.hex(),
            })
        _output_json(result)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("offset", style="dim", width=7)
    table.add_column("field", style="cyan")
    table.add_column("value")
    table.add_row("0", "pass flag", "1" if accepted else "0")
    if accepted:
        table.add_row("1", "elapsed seconds", str(outcome.elapsed_seconds))
        table.add_row("5", "blob hash", outcome.blob_hash.hex())
        table.add_row("37", "signer", "0x" + outcome.signer_address.hex())

    console.print()
    console.print("[bold]zkrun journal[/]")
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------

@zkrun_app.command("simulate")
def simulate_cmd(
    out: str = typer.Option(..., "--out", "-o", help="Where to write the input record"),
    signer: Optional[str] = typer.Option(None, "--signer", help="Signer ID from the key store (default: active signer)"),
    private_key: Optional[str] = typer.Option(
        None, "--private-key", envvar=ENV_PRIVATE_KEY,
        help="Hex secp256k1 secret; overrides the key store",
    ),
    duration: Optional[int] = typer.Option(None, "--duration", help="Run duration in seconds"),
    interval: Optional[int] = typer.Option(None, "--interval", help="Seconds between GPS fixes"),
    pace: Optional[float] = typer.Option(None, "--pace", help="Pace in meters per second"),
    max_elapsed_min: Optional[int] = typer.Option(
        None, "--max-elapsed-min", envvar=ENV_MAX_ELAPSED_MIN,
        help="Policy: maximum elapsed minutes",
    ),
    max_speed: Optional[int] = typer.Option(
        None, "--max-speed", envvar=ENV_MAX_SPEED_MPS,
        help="Policy: maximum segment speed (m/s)",
    ),
    start_time: Optional[int] = typer.Option(None, "--start-time", help="Unix start time (default: now)"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Simulate a run, sign its blob and write the guest input record."""
    from pathlib import Path

    from coincurve import PrivateKey
    from pydantic import ValidationError

    from zkrun.client import build_submission
    from zkrun.config import ClientDefaults
    from zkrun.keystore import get_default_keystore

    # Unset options fall through to the ClientDefaults field defaults.
    options = {
        "max_speed_mps": max_speed,
        "max_elapsed_min": max_elapsed_min,
        "duration_sec": duration,
        "interval_sec": interval,
        "pace_mps": pace,
    }
    try:
        defaults = ClientDefaults(**{k: v for k, v in options.items() if v is not None})
    except ValidationError as e:
        _bad_input("simulate", f"Invalid options: {e.errors()[0]['msg']}", output_json)

    if private_key:
        try:
            clean = private_key[2:] if private_key.startswith("0x") else private_key
            sk = PrivateKey(bytes.fromhex(clean))
        except ValueError as e:
            _bad_input("simulate", f"Invalid private key: {e}", output_json)
        signer_label = "(private key)"
    else:
        ks = get_default_keystore()
        signer_label = signer or ks.get_active_signer()
        if signer and not ks.has_key(signer):
            _bad_input("simulate", f"Signer not found: {signer}", output_json)
        sk = ks.ensure_key(signer_label)

    submission = build_submission(sk, defaults=defaults, start_time=start_time)
    Path(out).write_bytes(submission.input_bytes)

    if output_json:
        _output_json({
            "command": "simulate",
            "status": "ok",
            "input_path": out,
            "input_bytes": len(submission.input_bytes),
            "samples": len(submission.run.gps),
            "elapsed_seconds": submission.elapsed_sec,
            "blob_hash": submission.blob_hash.hex(),
            "signer": signer_label,
            "signer_address": "0x" + submission.signer_address.hex(),
        })

    console.print()
    console.print(Panel.fit(
        f"[bold green]Input record written[/]\n\n"
        f"Path:       {out}\n"
        f"Samples:    {len(submission.run.gps)}\n"
        f"Elapsed:    {submission.elapsed_sec}s\n"
        f"Blob hash:  {submission.blob_hash.hex()}\n"
        f"Signer:     {signer_label} (0x{submission.signer_address.hex()})",
        title="zkrun simulate",
    ))
    console.print()
    console.print(f"Next: [bold]zkrun verify {out} --out journal.bin[/]")


# ---------------------------------------------------------------------------
# Key subcommands
# ---------------------------------------------------------------------------

key_app = typer.Typer(
    name="key",
    help="Manage local signing keys",
    no_args_is_help=True,
)
zkrun_app.add_typer(key_app, name="key")


@key_app.command("list")
def key_list_cmd(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List local signer keys and active signer."""
    from zkrun.keystore import get_default_keystore

    ks = get_default_keystore()
    info = ks.signer_info()
    active = ks.get_active_signer()

    if output_json:
        _output_json(
            {"command": "key list", "status": "ok", "active_signer": active, "signers": info},
            exit_code=0,
        )

    if not info:
        console.print(Panel.fit(
            "[yellow]No signer keys found.[/]\n\n"
            "A key is auto-generated on first [bold]zkrun simulate[/].\n"
            "Create one now with:\n"
            "  [bold]zkrun key generate[/]",
            title="zkrun key list",
        ))
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("active", style="green", width=7)
    table.add_column("signer_id", style="cyan")
    table.add_column("address", style="dim")
    table.add_column("key_path", style="dim")
    for item in info:
        table.add_row(
            "yes" if item["active"] else "",
            item["signer_id"],
            item["address"],
            item["key_path"],
        )

    console.print()
    console.print("[bold]zkrun key list[/]")
    console.print(table)
    console.print()
    console.print(f"[dim]Active signer:[/] {active}")


@key_app.command("generate")
def key_generate_cmd(
    signer_id: str = typer.Argument("zkrun-local", help="Signer ID for the new key"),
    secret: Optional[str] = typer.Option(None, "--import", help="Import this hex secret instead of generating"),
    set_active: bool = typer.Option(True, "--set-active/--no-set-active", help="Make the new key active"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Generate a new secp256k1 signer key (or import an existing secret)."""
    from zkrun.keystore import get_default_keystore

    ks = get_default_keystore()
    if ks.has_key(signer_id):
        _bad_input("key generate", f"Signer already exists: {signer_id}", output_json)

    try:
        if secret:
            ks.import_key(signer_id, secret)
        else:
            ks.generate_key(signer_id)
    except ValueError as e:
        _bad_input("key generate", f"Invalid secret: {e}", output_json)
    if set_active:
        ks.set_active_signer(signer_id)

    address = ks.signer_address(signer_id)
    active = ks.get_active_signer()
    if output_json:
        _output_json(
            {
                "command": "key generate",
                "status": "ok",
                "signer_id": signer_id,
                "address": address,
                "imported": bool(secret),
                "active_signer": active,
            },
            exit_code=0,
        )

    console.print()
    console.print(Panel.fit(
        f"[bold green]Signer key {'imported' if secret else 'generated'}[/]\n\n"
        f"Signer:   {signer_id}\n"
        f"Address:  {address}\n"
        f"Active:   {active}",
        title="zkrun key generate",
    ))
    console.print()


@key_app.command("set-active")
def key_set_active_cmd(
    signer_id: str = typer.Argument(..., help="Signer ID to set active"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Set active signer used by zkrun simulate."""
    from zkrun.keystore import get_default_keystore

    ks = get_default_keystore()
    try:
        ks.set_active_signer(signer_id)
    except ValueError as e:
        _bad_input("key set-active", str(e), output_json)

    address = ks.signer_address(signer_id)
    if output_json:
        _output_json(
            {"command": "key set-active", "status": "ok", "active_signer": signer_id, "address": address},
            exit_code=0,
        )

    console.print()
    console.print(Panel.fit(
        f"[bold green]Active signer updated[/]\n\n"
        f"Signer:   {signer_id}\n"
        f"Address:  {address}",
        title="zkrun key set-active",
    ))
    console.print()


@key_app.command("show")
def key_show_cmd(
    signer_id: Optional[str] = typer.Argument(None, help="Signer ID (default: active signer)"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a signer's uncompressed public key and Keccak address."""
    from zkrun.keystore import get_default_keystore

    ks = get_default_keystore()
    signer_id = signer_id or ks.get_active_signer()
    if not ks.has_key(signer_id):
        _bad_input("key show", f"Signer not found: {signer_id}", output_json)

    pubkey = ks.get_public_key(signer_id)
    address = ks.signer_address(signer_id)
    if output_json:
        _output_json(
            {
                "command": "key show",
                "status": "ok",
                "signer_id": signer_id,
                "pubkey": pubkey.hex(),
                "address": address,
            },
            exit_code=0,
        )

    console.print()
    console.print(Panel.fit(
        f"Signer:   {signer_id}\n"
        f"Pubkey:   {pubkey.hex()}\n"
        f"Address:  {address}",
        title="zkrun key show",
    ))
    console.print()


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------

@zkrun_app.command("version")
def show_version(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show version info."""
    from zkrun import __version__
    from zkrun.policy import EARTH_RADIUS_M, MIN_DISTANCE_M

    if output_json:
        _output_json({
            "command": "version",
            "status": "ok",
            "version": __version__,
            "earth_radius_m": EARTH_RADIUS_M,
            "min_distance_m": MIN_DISTANCE_M,
        })

    console.print(f"zkrun {__version__}")
    console.print(f"[dim]Earth radius:[/] {EARTH_RADIUS_M} m   [dim]Minimum distance:[/] {MIN_DISTANCE_M} m")
