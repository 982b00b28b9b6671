"""
hostreg — command line for a local registry chain kept in a JSON state file.

Commands:
  hostreg provision --state FILE [--fee N]       Fresh chain + development deployment
  hostreg call --state FILE TARGET METHOD [ARGS]  Run a transaction (or --dry-run)
  hostreg inspect --state FILE TARGET             Kind, balance, owner, fee, stores
  hostreg status --state FILE                     Link status of the deployed pair

TARGET may be a 0x address, a dev account "#N", or one of the deployment
names: account, host, string_storage.

Arguments are parsed as: "#N" → dev account N, "0x…" → bytes, integers → int,
anything else → string (prefix with "s:" to force a string).

Examples:
  hostreg provision --state devnet.json
  hostreg call --state devnet.json account host_register host --sender '#1' --value 100
  hostreg call --state devnet.json account.data set name Jain --sender '#1'
  hostreg status --state devnet.json
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from hostreg import logging as hlog
from hostreg.config import load_config
from hostreg.contracts.links import link_status
from hostreg.errors import ExecError, error_to_receipt_fields
from hostreg.runtime.chain import Chain
from hostreg.runtime.context import to_hex
from hostreg.stdlib.access import Ownable
from hostreg.tools import load_state_file, save_state_file
from hostreg.tools.fixtures import dev_accounts, fund_accounts, resolve_account
from hostreg.tools.provision import Deployment, deployment_summary, provision_development

app = typer.Typer(
    name="hostreg",
    help="Account/Host registry on a local, file-backed chain",
    no_args_is_help=True,
    add_completion=False,
)

_INT_RE = re.compile(r"^-?\d+$")
_NAMES = ("account", "host", "string_storage")

STATE_OPTION = typer.Option(Path("hostreg-state.json"), "--state", "-s", help="State file", envvar="HOSTREG_STATE")


# --------------------------------------------------------------------------- #
# helpers
# --------------------------------------------------------------------------- #


class _Session:
    def __init__(self, chain: Chain, deployment: Deployment, accounts: List[bytes]) -> None:
        self.chain = chain
        self.deployment = deployment
        self.accounts = accounts

    @classmethod
    def load(cls, path: Path) -> "_Session":
        try:
            data = load_state_file(path)
        except (OSError, ValueError) as e:
            typer.echo(f"Error: cannot load state: {e}", err=True)
            raise typer.Exit(1)
        chain = Chain.from_state(data["chain"], load_config())
        accounts = [bytes.fromhex(a[2:]) for a in data["dev_accounts"]]
        return cls(chain, Deployment.from_dict(data["deployment"]), accounts)

    def save(self, path: Path) -> None:
        save_state_file(
            path,
            {
                "chain": self.chain.export_state(),
                "deployment": self.deployment.to_dict(),
                "dev_accounts": [to_hex(a) for a in self.accounts],
            },
        )

    def resolve_target(self, token: str) -> bytes:
        """Deployment name (optionally with a store suffix), #N, or 0x address."""
        base, _, store = token.partition(".")
        named = {
            "account": self.deployment.account,
            "host": self.deployment.host,
            "string_storage": self.deployment.string_storage,
        }
        if base in named:
            addr = named[base]
            if store:
                view = getattr(self.chain.at(addr), store, None)
                if store not in ("data", "registered", "removed") or view is None:
                    raise typer.BadParameter(f"{base} has no store {store!r}")
                addr = view()
            return addr
        try:
            return resolve_account(token, self.accounts)
        except ValueError as e:
            raise typer.BadParameter(str(e))

    def parse_arg(self, token: str) -> Any:
        if token.startswith("s:"):
            return token[2:]
        if token.startswith("#") or token.partition(".")[0] in _NAMES:
            return self.resolve_target(token)
        if token.lower().startswith("0x"):
            try:
                return bytes.fromhex(token[2:])
            except ValueError:
                raise typer.BadParameter(f"not a hex value: {token!r} (prefix with s: for a literal string)")
        if _INT_RE.match(token):
            return int(token)
        return token


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return to_hex(v)
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    return v


def _pretty(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


# --------------------------------------------------------------------------- #
# commands
# --------------------------------------------------------------------------- #


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ..."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
) -> None:
    """Account/Host registry tooling."""
    cfg = load_config()
    hlog.configure(json=True if json_logs else None, level=log_level or cfg.log_level)


@app.command()
def provision(
    state: Path = STATE_OPTION,
    fee: Optional[int] = typer.Option(None, "--fee", min=0, help="Host fee (default from HOSTREG_DEFAULT_FEE)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file"),
) -> None:
    """Create a fresh chain with funded dev accounts and the development deployment."""
    if state.exists() and not force:
        typer.echo(f"Error: {state} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)
    cfg = load_config()
    chain = Chain(cfg)
    accounts = dev_accounts(cfg.dev_accounts, length=cfg.address_len)
    fund_accounts(chain, accounts)
    dep = provision_development(chain, accounts, fee=fee)
    session = _Session(chain, dep, accounts)
    session.save(state)
    typer.echo(_pretty(deployment_summary(chain, dep)))


@app.command()
def call(
    target: str = typer.Argument(..., help="Contract: account | host | string_storage[.store] | 0x..."),
    method: str = typer.Argument(..., help="Method name, e.g. host_register"),
    args: Optional[List[str]] = typer.Argument(None, help="Method arguments"),
    state: Path = STATE_OPTION,
    sender: str = typer.Option("#0", "--sender", "-f", help="Caller: #N or 0x address"),
    value: int = typer.Option(0, "--value", "-v", min=0, help="Payment attached to the call"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate; do not persist"),
) -> None:
    """Execute a contract method and print a receipt."""
    session = _Session.load(state)
    chain = session.chain
    address = session.resolve_target(target)
    caller = session.resolve_target(sender)
    parsed = [session.parse_arg(a) for a in (args or [])]

    mark = chain.events.mark()
    run = chain.simulate if dry_run else chain.call
    try:
        result = run(address, method, *parsed, sender=caller, value=value)
    except ExecError as e:
        typer.echo(_pretty(error_to_receipt_fields(e)))
        raise typer.Exit(1)
    except TypeError as e:
        typer.echo(f"Error: {method}: {e}", err=True)
        raise typer.Exit(1)

    receipt = {
        "status": "SUCCESS",
        "return": _jsonable(result),
        "events": [e.to_dict() for e in chain.events.since(mark)],
    }
    if not dry_run:
        session.save(state)
    typer.echo(_pretty(receipt))


@app.command()
def inspect(
    target: str = typer.Argument(..., help="account | host | string_storage[.store] | #N | 0x..."),
    state: Path = STATE_OPTION,
) -> None:
    """Show what lives at an address."""
    session = _Session.load(state)
    chain = session.chain
    address = session.resolve_target(target)
    kind = chain.kind_of(address)
    out: Dict[str, Any] = {
        "address": to_hex(address),
        "kind": kind or "EOA",
        "balance": chain.balance_of(address),
        "nonce": chain.nonce_of(address),
    }
    if kind is not None:
        handle = chain.at(address)
        if isinstance(handle, Ownable):
            out["owner"] = to_hex(handle.owner())
        for name in ("fee", "data", "registered", "removed"):
            fn = getattr(handle, name, None)
            if fn is not None and callable(fn):
                out[name] = _jsonable(fn())
    typer.echo(_pretty(out))


@app.command()
def status(
    state: Path = STATE_OPTION,
    account: Optional[str] = typer.Option(None, "--account", help="Account address (default: deployed)"),
    host: Optional[str] = typer.Option(None, "--host", help="Host address (default: deployed)"),
) -> None:
    """Report whether an Account and a Host are linked on both sides."""
    session = _Session.load(state)
    a = session.resolve_target(account or "account")
    h = session.resolve_target(host or "host")
    try:
        st = link_status(session.chain, a, h)
    except ExecError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1)
    typer.echo(_pretty({"account": to_hex(a), "host": to_hex(h), "status": st}))


if __name__ == "__main__":  # pragma: no cover
    app()
