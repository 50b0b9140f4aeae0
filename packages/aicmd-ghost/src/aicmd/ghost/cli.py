"""CLI entry point for aicmd. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio
import sys

import click

from aicmd.ai.credentials import resolve_credential
from aicmd.ai.gateway import Gateway, create_gateway, suggest_command
from aicmd.ai.providers.builtins import register_builtin_backends
from aicmd.ai.registry import get_backend, get_backends
from aicmd.ai.types import AuthMissing, GatewayError
from aicmd.ghost.log import DebugLog, configure_logging
from aicmd.ghost.settings import SettingsManager

# commands that put the terminal in raw mode
INTERACTIVE_COMMANDS = ("read", "repl")

ZSH_SNIPPET = """\
# aicmd: press {key} to edit the current line with AI ghost suggestions
_aicmd_widget() {{
  local result
  result=$(command aicmd read --suggest --initial "$BUFFER" </dev/tty) || {{ zle reset-prompt; return 1; }}
  BUFFER=$result
  CURSOR=${{#BUFFER}}
  zle reset-prompt
}}
zle -N _aicmd_widget
bindkey '{binding}' _aicmd_widget
"""


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _zsh_binding(key: str) -> str:
    """Translate a key id such as ``ctrl+z`` to zsh ``bindkey`` notation."""
    if key.startswith("ctrl+") and len(key) == 6:
        return f"^{key[-1]}"
    if key.startswith("alt+") and len(key) == 5:
        return f"^[{key[-1]}"
    return key


def _build_gateway(settings: SettingsManager) -> Gateway:
    provider = settings.get_provider()
    if get_backend(provider) is None:
        known = ", ".join(spec.name for spec in get_backends())
        raise click.ClickException(f"unknown provider '{provider}' (choose from: {known})")

    on_payload = DebugLog(settings.get_log_file()) if settings.get_debug() else None
    return create_gateway(
        provider,
        settings.get_model(),
        base_url=settings.get_base_url(),
        timeout=settings.get_timeout(),
        max_tokens=settings.get_max_tokens(),
        on_payload=on_payload,
    )


@click.group(invoke_without_command=True)
@click.option("--provider", default=None, help="Backend to use (see 'aicmd providers')")
@click.option("--model", default=None, help="Model id (defaults to the provider's default)")
@click.option("--debug", is_flag=True, default=False, help="Log requests and responses to the log file")
@click.pass_context
def main(ctx, provider, model, debug):
    """Turn natural language into shell commands, shown as ghost text."""
    register_builtin_backends()
    settings = SettingsManager.create()
    settings.apply_overrides({"provider": provider, "model": model, "debug": debug or None})
    configure_logging(
        settings.get_debug(),
        settings.get_log_file(),
        interactive=ctx.invoked_subcommand in INTERACTIVE_COMMANDS,
    )
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("text", nargs=-1, required=True)
@click.pass_obj
def suggest(settings, text):
    """Print a single command for TEXT."""
    gateway = _build_gateway(settings)
    try:
        command = _run(suggest_command(gateway, " ".join(text)))
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    except GatewayError as e:
        message = e.message if isinstance(e, AuthMissing) else f"aicmd: {e.message}"
        click.echo(message, err=True)
        sys.exit(1)
    click.echo(command)


@main.command()
@click.option("--initial", default="", help="Text to start editing with")
@click.option("--prompt", default="", help="Prompt shown before the line")
@click.option("--suggest", "suggest_now", is_flag=True, default=False, help="Request a suggestion for the initial text right away")
@click.pass_obj
def read(settings, initial, prompt, suggest_now):
    """Edit one line with ghost suggestions and print it to stdout."""
    from aicmd.ghost.app import GhostApp

    if not sys.stdin.isatty():
        raise click.ClickException("'aicmd read' needs a terminal on stdin")

    app = GhostApp(_build_gateway(settings), settings, prompt=prompt)
    line = _run(app.read_line(initial, keep_line=False, suggest=suggest_now))
    if line is None:
        sys.exit(1)
    click.echo(line)


@main.command()
@click.option("--prompt", default="$ ", help="Prompt shown before each line")
@click.pass_obj
def repl(settings, prompt):
    """Read lines with ghost suggestions and run them with $SHELL."""
    from aicmd.ghost.app import GhostApp

    if not sys.stdin.isatty():
        raise click.ClickException("'aicmd repl' needs a terminal on stdin")

    app = GhostApp(_build_gateway(settings), settings, prompt=prompt)
    sys.exit(_run(app.repl()))


@main.command("init-zsh")
@click.pass_obj
def init_zsh(settings):
    """Print a zsh snippet that binds the editor to the trigger key."""
    keys = settings.get_keybindings().get("suggest") or "ctrl+z"
    key = keys[0] if isinstance(keys, list) else keys
    click.echo(ZSH_SNIPPET.format(key=key, binding=_zsh_binding(key)), nl=False)


@main.command()
@click.pass_obj
def providers(settings):
    """List backends and whether a credential resolves for each."""
    active = settings.get_provider()
    for spec in get_backends():
        try:
            resolve_credential(spec.name)
            state = "ready"
        except AuthMissing:
            state = "no credential"
        marker = "*" if spec.name == active else " "
        click.echo(f"{marker} {spec.name:<12} {spec.default_model:<28} {state}")


if __name__ == "__main__":
    main()
