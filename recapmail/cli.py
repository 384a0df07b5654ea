"""Command line interface for recapmail."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, NoReturn, Optional

import typer

from . import config as config_mod
from .config import ConfigError
from .errors import RecapmailError
from .logging import configure_logging
from .mailer import EmailDispatcher, split_recipients
from .prompts import PRESETS, resolve_preset
from .providers import configured_provider_names
from .storage import MemoryStorage
from .summaries import SummaryService
from .transcripts import create_transcript_from_upload

app = typer.Typer(add_completion=False, help="Summarise meeting transcripts with AI and email the result.")


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    if version:
        typer.echo("recapmail v0.1.0")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:  # pragma: no cover - starts a server
    """Run the HTTP API."""

    import uvicorn

    configure_logging()
    uvicorn.run("recapmail.api:app", host=host, port=port, reload=reload)


@app.command()
def summarise(
    transcript: Path = typer.Argument(..., exists=True, readable=True, help="Path to a .txt transcript."),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Instructions for the summary."),
    preset: Optional[str] = typer.Option(None, "--preset", help="Use a built-in prompt (see `recapmail prompts`)."),
    email: Optional[str] = typer.Option(None, "--email", help="Comma separated recipients to send the summary to."),
    subject: Optional[str] = typer.Option(None, "--subject", help="Email subject."),
    message: Optional[str] = typer.Option(None, "--message", help="Note placed above the summary in the email."),
    attach_transcript: bool = typer.Option(
        False, "--attach-transcript", help="Attach the transcript file to the email."
    ),
) -> None:
    """Generate a summary for a transcript file and optionally email it."""

    configure_logging()

    if prompt and preset:
        _fail("Use either --prompt or --preset, not both.")
    if preset:
        try:
            prompt = resolve_preset(preset)
        except KeyError as exc:
            _fail(f"{exc.args[0]}. Available: {', '.join(PRESETS)}")
    if not prompt:
        _fail("A prompt is required. Pass --prompt or --preset.")

    store = MemoryStorage()
    summaries = SummaryService(store)
    try:
        record = create_transcript_from_upload(store, transcript.name, None, transcript.read_bytes())
        summary = summaries.create_summary(record.id, prompt)
    except RecapmailError as exc:
        _fail(exc.message)

    typer.secho(summary.content, fg=typer.colors.GREEN)

    if not email:
        return

    dispatcher = EmailDispatcher(store)
    try:
        share = dispatcher.send_summary_email(
            summary.id,
            split_recipients(email),
            subject=subject,
            message=message,
            include_transcript=attach_transcript,
        )
    except RecapmailError as exc:
        _fail(exc.message)
    typer.secho(
        f"\nSent to {', '.join(share.recipient_list)} ({share.subject}).",
        fg=typer.colors.BLUE,
    )


@app.command()
def prompts() -> None:
    """List the built-in prompt presets."""

    for name, preset in PRESETS.items():
        typer.echo(f"{name:<14}  {preset['title']:<24}  {preset['prompt']}")


@app.command()
def providers() -> None:
    """Show which AI providers have credentials, in the order they are tried."""

    try:
        cfg = config_mod.runtime_config()
    except ConfigError as exc:
        _fail(str(exc))
    names = configured_provider_names(cfg)
    if not names:
        typer.echo("No AI providers configured. Set GOOGLE_API_KEY, OPENAI_API_KEY or GROQ_API_KEY.")
    else:
        typer.echo("Providers in priority order: " + ", ".join(names))
    typer.echo("Mail: " + ("Resend configured" if cfg.resend_api_key else "not configured (RESEND_API_KEY)"))


@app.command()
def config(
    google_api_key: Optional[str] = typer.Option(None, help="API key for Google Gemini."),
    openai_api_key: Optional[str] = typer.Option(None, help="API key for OpenAI."),
    groq_api_key: Optional[str] = typer.Option(None, help="API key for Groq."),
    resend_api_key: Optional[str] = typer.Option(None, help="API key for Resend."),
    gemini_model: Optional[str] = typer.Option(None, help="Gemini model id."),
    openai_model: Optional[str] = typer.Option(None, help="OpenAI model id."),
    groq_model: Optional[str] = typer.Option(None, help="Groq model id."),
    mail_from: Optional[str] = typer.Option(None, help="Sender address for summary emails."),
    api_timeout: Optional[float] = typer.Option(None, help="HTTP timeout (seconds) for provider calls."),
    show: bool = typer.Option(False, "--show", help="Display the active configuration."),
) -> None:
    """Update or inspect configuration settings."""

    updates: Dict[str, object] = {
        key: value
        for key, value in {
            "google_api_key": google_api_key,
            "openai_api_key": openai_api_key,
            "groq_api_key": groq_api_key,
            "resend_api_key": resend_api_key,
            "gemini_model": gemini_model,
            "openai_model": openai_model,
            "groq_model": groq_model,
            "mail_from": mail_from,
            "api_timeout": api_timeout,
        }.items()
        if value is not None
    }

    if show or not updates:
        try:
            cfg = config_mod.load_config()
        except ConfigError as exc:
            _fail(str(exc))
        typer.echo(json.dumps(config_mod.redacted(cfg), indent=2, default=str))
        return

    try:
        config_mod.update_config(**updates)
    except ConfigError as exc:
        _fail(str(exc))
    typer.secho("Configuration updated.", fg=typer.colors.BLUE)


if __name__ == "__main__":  # pragma: no cover
    app()
