"""fixprompt CLI — run the API server or try the pipeline from a terminal.

Usage:
    fixprompt serve --port 3000
    fixprompt classify "Fix this Python function"
    fixprompt improve "help me write a cover letter" --platform claude --domain career
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from fixprompt.errors import FixPromptError, InvalidInputError

app = typer.Typer(
    name="fixprompt",
    help="fixprompt — prompt improvement backend: domain detection, questions, scoring, rewriting.",
    no_args_is_help=True,
)


def _init_logging(env_file: Path | None = None) -> None:
    """Initialize nfo logging from .env config (called once per CLI invocation)."""
    from fixprompt.env_config import get_env_config
    from fixprompt.logging_setup import setup_logging

    setup_logging(get_env_config(str(env_file) if env_file else None))


def _load_context(path: Path | None) -> dict | None:
    """Read a conversation context from a JSON file."""
    if path is None:
        return None
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise InvalidInputError(f"Invalid context file {path}: {e.__class__.__name__}") from e


def _fail(error: FixPromptError) -> None:
    typer.echo(f"✗ {error.kind}: {error.message}", err=True)
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Bind host (default: from .env)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: from .env)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override completion model (default: from .env)"),
    rate_limit: Optional[int] = typer.Option(None, "--rate-limit", help="Requests per minute per IP on /api/* (0 disables)"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file (default: .env)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes (dev mode)"),
):
    """Start the HTTP API server.

    Example:
        fixprompt serve
        fixprompt serve --model claude-3-5-sonnet-20241022 --port 8080
    """
    import uvicorn
    from fixprompt.env_config import get_env_config
    from fixprompt.server import create_app

    env = get_env_config(str(env_file) if env_file else None)
    _init_logging(env_file)

    effective_host = host or env.host
    effective_port = port or env.port
    effective_model = model or env.model

    create_app(
        model=effective_model,
        rate_limit=rate_limit,
        dotenv_path=str(env_file) if env_file else None,
    )

    typer.echo(f"\n✏️  fixprompt API Server")
    typer.echo(f"   http://{effective_host}:{effective_port}")
    typer.echo(f"   Model: {effective_model} | Env: {env.environment}")
    typer.echo(f"   Rate limit: {rate_limit if rate_limit is not None else env.rate_limit}/min per IP")
    typer.echo(f"   Endpoints: /api/detect-domain, /api/generate-questions, /api/context, /api/improve-prompt, /health")
    typer.echo(f"{'='*60}\n")

    uvicorn.run(
        "fixprompt.server:app",
        host=effective_host,
        port=effective_port,
        reload=reload,
        log_level=env.log_level,
    )


@app.command()
def classify(
    prompt: str = typer.Argument(..., help="Prompt text to classify"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Detect the domain of a prompt (keyword scoring, no LLM call)."""
    from fixprompt.classifier import KeywordDomainClassifier

    try:
        result = KeywordDomainClassifier().classify(prompt)
    except FixPromptError as e:
        _fail(e)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo(f"Domain: {result.domain} (confidence: {result.confidence:.2f})")
    for name, value in sorted(result.scores.items(), key=lambda kv: -kv[1]):
        if value > 0:
            typer.echo(f"   {name:22s} {value:.1f}")


@app.command()
def score(
    prompt: str = typer.Argument(..., help="Prompt text to score"),
):
    """Show the 0-100 quality score and its four components."""
    from fixprompt.scorer import PromptQualityScorer

    scorer = PromptQualityScorer()
    typer.echo(f"Score: {scorer.score(prompt)}/100")
    for name, value in scorer.breakdown(prompt).items():
        typer.echo(f"   {name:12s} {value}")


@app.command()
def questions(
    domain: str = typer.Argument("general", help="Domain name (unknown domains fall back to general)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List the clarifying questions for a domain."""
    from fixprompt.questions import DomainQuestionCatalog

    items = DomainQuestionCatalog().questions_for(domain)
    if json_output:
        typer.echo(json.dumps([q.model_dump() for q in items], indent=2))
        return

    for q in items:
        typer.echo(f"[{q.id}] {q.text}")
        typer.echo(f"      {' | '.join(a.label for a in q.answers)}")


@app.command()
def improve(
    prompt: str = typer.Argument(..., help="Prompt to improve"),
    platform: str = typer.Option("chatgpt", "--platform", "-p", help="Target platform: chatgpt|claude"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain (default: detected from the prompt)"),
    context_file: Optional[Path] = typer.Option(None, "--context", "-C", help="JSON file with a conversation context"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override completion model (default: from .env)"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file (default: .env)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Rewrite a prompt through the configured LLM and score before/after."""
    from fixprompt.core import PromptImprover
    from fixprompt.env_config import get_env_config
    from fixprompt.gateway import CompletionGateway

    try:
        context = _load_context(context_file)
    except FixPromptError as e:
        _fail(e)

    _init_logging(env_file)
    env = get_env_config(str(env_file) if env_file else None)

    config = env.gateway_config()
    if model:
        config = config.model_copy(update={"model": model})
    improver = PromptImprover(gateway=CompletionGateway(config))

    try:
        effective_domain = domain or improver.classify(prompt).domain
        result = asyncio.run(improver.improve(
            prompt=prompt,
            platform=platform,
            domain=effective_domain,
            context=context,
        ))
    except FixPromptError as e:
        _fail(e)

    if json_output:
        typer.echo(result.model_dump_json(indent=2, by_alias=True, exclude_none=True))
        return

    typer.echo(f"\n{'='*60}")
    typer.echo(f"✏️  fixprompt [{config.model}] domain={effective_domain} mode={result.mode.value}")
    typer.echo(f"{'='*60}")
    typer.echo(f"\n{result.improved}")
    typer.echo(f"\n{'='*60}")
    typer.echo(f"   Score: {result.score.before} → {result.score.after} ({result.score.improvement:+d})")
    for q in result.questions:
        typer.echo(f"   ? {q.text}")
    typer.echo(f"{'='*60}")


def _doctor_check_config(env) -> list[str]:
    """Format configuration summary lines."""
    return [
        f"   Model:       {env.model}",
        f"   Sampling:    temperature={env.temperature} top_p={env.top_p} max_tokens={env.max_tokens}",
        f"   Timeout:     {env.timeout}s (attempts: {env.max_retries})",
        f"   Server:      {env.host}:{env.port} ({env.environment})",
        f"   Rate limit:  {env.rate_limit}/min per IP" if env.rate_limit > 0 else "   Rate limit:  OFF",
        f"   Origins:     {', '.join(env.allowed_origins)}",
    ]


def _doctor_check_providers(env) -> list[str]:
    from fixprompt.env_config import check_providers

    lines = []
    for name, info in check_providers(env).items():
        icon = "✓" if info["status"] == "configured" else "✗"
        lines.append(f"   {icon} {name.upper():12s} {info['detail']}")
    return lines


def _doctor_check_files() -> list[str]:
    from fixprompt.prompt_registry import PromptRegistry
    from fixprompt.questions import DomainQuestionCatalog

    lines = []
    problems = PromptRegistry().validate()
    if problems:
        lines.extend(f"   ✗ instructions.yaml: {p}" for p in problems)
    else:
        lines.append("   ✓ instructions.yaml")
    lines.append(f"   ✓ questions.yaml ({len(DomainQuestionCatalog().domains())} domains)")
    return lines


@app.command()
def doctor(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
):
    """Check configuration, provider keys and bundled tables."""
    from fixprompt.env_config import get_env_config

    env = get_env_config(str(env_file) if env_file else None)

    typer.echo(f"\n✏️  fixprompt Doctor")
    typer.echo(f"{'='*60}")

    typer.echo(f"\n\U0001f4cb Configuration:")
    for line in _doctor_check_config(env):
        typer.echo(line)

    typer.echo(f"\n\U0001f50c Providers:")
    for line in _doctor_check_providers(env):
        typer.echo(line)

    typer.echo(f"\n\U0001f4c4 Tables:")
    for line in _doctor_check_files():
        typer.echo(line)

    typer.echo(f"\n{'='*60}")
    typer.echo(f"✅ Doctor complete.\n")


if __name__ == "__main__":
    app()
