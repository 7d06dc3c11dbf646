"""Enhanced Context CLI main entry point."""

import json

import click

from enhanced_context import __version__
from enhanced_context.catalog import ConfigurationError
from enhanced_context.services import (
    InvalidRequestError,
    MatcherError,
    ServiceFactory,
    recommend_agents,
)


@click.group()
@click.version_option(version=__version__, prog_name="enhanced-context")
def cli() -> None:
    """Enhanced Context - SDLC contexts, templates and agents for AI assistants."""
    pass


@cli.command()
@click.option("--stdio", is_flag=True, help="Use the stdio transport instead of HTTP.")
@click.option("--host", default=None, help="HTTP server host.")
@click.option("--port", type=int, default=None, help="HTTP server port.")
def serve(stdio: bool, host: str | None, port: int | None) -> None:
    """Run the MCP server."""
    from enhanced_context.server.main import serve as run_server

    run_server(stdio=stdio, host=host, port=port)


@cli.command()
@click.argument("statement")
@click.option("--json", "as_json", is_flag=True, help="Print the analysis as JSON.")
def analyze(statement: str, as_json: bool) -> None:
    """Analyze a task statement and show the combination it selects."""
    factory = ServiceFactory()
    try:
        service = factory.create_enhanced_context_service()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
    analysis = service.intent_analyzer.analyze(statement)

    combination = None
    try:
        params, _ = service.resolve_parameters({"task_statement": statement})
        combination = service.combination_service.find_best_combination(params)
    except (InvalidRequestError, ConfigurationError) as e:
        click.echo(f"Warning: {e}", err=True)

    if as_json:
        data = {"analysis": analysis.to_dict()}
        if combination is not None:
            data["combination"] = {"id": combination.id, "name": combination.name}
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Query type:   {analysis.query_type}")
    click.echo(f"Task intent:  {analysis.task_intent}")
    click.echo(f"Scope:        {analysis.scope or '-'}")
    click.echo(f"Complexity:   {analysis.complexity or '-'}")
    click.echo(f"Output:       {analysis.output_format or '-'}")
    click.echo(f"Domains:      {', '.join(analysis.domain_focus or []) or '-'}")
    click.echo(f"Confidence:   {analysis.confidence:.2f}")
    if combination is not None:
        click.echo(f"Combination:  {combination.name} ({combination.id})")
    for line in analysis.reasoning:
        click.echo(f"  - {line}")


@cli.command("match-agents")
@click.argument("paths", nargs=-1)
def match_agents(paths: tuple[str, ...]) -> None:
    """Recommend specialist agents for file paths."""
    result = recommend_agents(list(paths))
    if isinstance(result, MatcherError):
        click.echo(f"Error: {result.error}", err=True)
        click.echo(result.usage, err=True)
        raise SystemExit(1)

    click.echo(f"{'Agent':<28} {'Matches':>7}  Files")
    click.echo("-" * 50)
    for rec in result:
        click.echo(f"{rec.agent_id:<28} {rec.match_count:>7}  {', '.join(rec.files)}")


@cli.command()
@click.option("--query-type", default=None, help="Only show this query type.")
def combinations(query_type: str | None) -> None:
    """List the context combination catalog."""
    factory = ServiceFactory()
    service = factory.create_combination_service()
    try:
        catalog = service.list_combinations()
        default = service.default_combination
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e

    click.echo(f"{'ID':<32} {'Query type':<22} Name")
    click.echo("-" * 80)
    for combination in catalog:
        if query_type and combination.query_type != query_type:
            continue
        click.echo(f"{combination.id:<32} {combination.query_type:<22} {combination.name}")
    click.echo(f"\nDefault: {default.id}")
