"""contextpack command-line interface.

Diagnostic commands for the resolution engine:
- contextpack parse: Show how specifiers are parsed
- contextpack classify: Show how file names are classified
- contextpack resolve: Resolve specifiers and print the bundle and size report
- contextpack config init: Write the default configuration file
"""

import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from contextpack.budget.types import BudgetMode
from contextpack.cli.errors import handle_error
from contextpack.filetypes.classifier import classify
from contextpack.foundation.config import load_config, save_default_config
from contextpack.foundation.errors import ContextPackError, InvalidPathError
from contextpack.foundation.logging import configure_logging
from contextpack.foundation.types.config import ContextPackConfig
from contextpack.foundation.utils import format_bytes, format_ratio
from contextpack.paths.parser import try_parse_path_spec
from contextpack.resolver import ContextResolver, ResolvedBundle, ResolveOptions, ResolveStatus

console = Console()

_STATUS_STYLE = {
    ResolveStatus.COMPLETE: "green",
    ResolveStatus.PARTIAL: "yellow",
    ResolveStatus.ABORTED: "red",
    ResolveStatus.DEADLINE_EXCEEDED: "yellow",
}

_HEALTH_STYLE = {"healthy": "green", "warning": "yellow", "error": "red"}


@click.group()
@click.version_option(package_name="contextpack")
def cli() -> None:
    """contextpack - Resolve file references into bounded LLM context.

    Examples:

        contextpack parse owner/repo:src/app.py@main
        contextpack classify logo.png .env notes.txt
        contextpack resolve README.md docs/ --max-tokens 50000
    """


# =============================================================================
# parse / classify
# =============================================================================


@cli.command()
@click.argument("specs", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def parse(specs: tuple[str, ...], json_output: bool) -> None:
    """Parse path specifiers and show their fields.

    Exits with status 1 if any specifier is invalid.
    """
    results = [(raw, try_parse_path_spec(raw)) for raw in specs]
    invalid = sum(1 for _, parsed in results if isinstance(parsed, InvalidPathError))

    if json_output:
        rows = []
        for raw, parsed in results:
            if isinstance(parsed, InvalidPathError):
                rows.append({"input": raw, "valid": False, "error": str(parsed)})
            else:
                rows.append({
                    "input": raw,
                    "valid": True,
                    "owner": parsed.owner,
                    "repo": parsed.repo,
                    "file_path": parsed.file_path,
                    "ref": parsed.ref,
                    "key": parsed.key,
                    "remote": parsed.is_remote,
                })
        click.echo(json.dumps(rows, indent=2))
    else:
        table = Table(title="Path Specifiers")
        table.add_column("Input", style="cyan")
        table.add_column("Source")
        table.add_column("Path")
        table.add_column("Ref")
        table.add_column("Key", style="dim")
        for raw, parsed in results:
            if isinstance(parsed, InvalidPathError):
                table.add_row(raw, "[red]invalid[/red]", f"[red]{parsed}[/red]", "", "")
                continue
            source = parsed.full_name or "local"
            table.add_row(raw, source, parsed.file_path, parsed.ref or "-", parsed.key)
        console.print(table)

    if invalid:
        sys.exit(1)


@cli.command("classify")
@click.argument("names", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def classify_cmd(names: tuple[str, ...], json_output: bool) -> None:
    """Classify file names by extension and well-known name."""
    hints = [(name, classify(name)) for name in names]

    if json_output:
        rows = [
            {
                "name": name,
                "type": hint.semantic_type.value,
                "base_type": hint.base_type.value,
                "mime": hint.mime,
                "category": hint.category,
                "language": hint.language,
                "sensitive": hint.sensitive,
                "cautious": hint.cautious,
                "tags": sorted(hint.tags),
            }
            for name, hint in hints
        ]
        click.echo(json.dumps(rows, indent=2))
        return

    table = Table(title="File Types")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("MIME")
    table.add_column("Category")
    table.add_column("Flags", style="yellow")
    for name, hint in hints:
        flags = []
        if hint.sensitive:
            flags.append("sensitive")
        if hint.cautious:
            flags.append("cautious")
        flags.extend(sorted(hint.tags))
        label = hint.semantic_type.value
        if hint.language:
            label = f"{label} ({hint.language})"
        table.add_row(name, label, hint.mime, hint.category, ", ".join(flags) or "-")
    console.print(table)


# =============================================================================
# resolve
# =============================================================================


@cli.command()
@click.argument("specs", nargs=-1, required=True)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Base directory for local paths (default: resolver.root from config)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file to load instead of .contextpack/config.yaml",
)
@click.option("--max-bytes", type=click.IntRange(min=0), help="Total byte budget")
@click.option("--max-tokens", type=click.IntRange(min=0), help="Estimated token budget")
@click.option("--max-files", type=click.IntRange(min=0), help="File count budget")
@click.option(
    "--mode",
    type=click.Choice(["strict", "progressive"]),
    help="strict aborts on the first breach, progressive stops admitting",
)
@click.option("--concurrency", "-j", type=click.IntRange(min=1), help="Parallel fetches")
@click.option("--deadline", type=click.FloatRange(min=0, min_open=True), help="Deadline in seconds")
@click.option("--include", "include", multiple=True, help="Regex directory entries must match")
@click.option("--exclude", "exclude", multiple=True, help="Regex that drops directory entries")
@click.option("--fail-fast", is_flag=True, help="Stop on the first invalid specifier")
@click.option("--skip-sensitive", is_flag=True, help="Skip .env, *.pem and similar files")
@click.option("--json", "json_output", is_flag=True, help="Output bundle summary as JSON")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def resolve(
    specs: tuple[str, ...],
    root: Path | None,
    config_path: Path | None,
    max_bytes: int | None,
    max_tokens: int | None,
    max_files: int | None,
    mode: str | None,
    concurrency: int | None,
    deadline: float | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    fail_fast: bool,
    skip_sensitive: bool,
    json_output: bool,
    debug: bool,
) -> None:
    """Resolve specifiers into a bundle and print the size report.

    Examples:

        contextpack resolve README.md src/ --max-files 30
        contextpack resolve octocat/Hello-World:README@master --json
        contextpack resolve docs/ --mode strict --max-tokens 20000
    """
    configure_logging(debug=debug)

    try:
        config = load_config(config_path)
        options = _build_options(
            config,
            max_bytes=max_bytes,
            max_tokens=max_tokens,
            max_files=max_files,
            mode=mode,
            concurrency=concurrency,
            deadline=deadline,
            include=include,
            exclude=exclude,
            fail_fast=fail_fast,
            skip_sensitive=skip_sensitive,
        )
        bundle = asyncio.run(_resolve(config, root, list(specs), options))
    except ContextPackError as e:
        handle_error(e, json_output=json_output)

    if json_output:
        click.echo(json.dumps(bundle.to_dict(), indent=2))
    else:
        _render_bundle(bundle)


def _build_options(
    config: ContextPackConfig,
    *,
    max_bytes: int | None,
    max_tokens: int | None,
    max_files: int | None,
    mode: str | None,
    concurrency: int | None,
    deadline: float | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    fail_fast: bool,
    skip_sensitive: bool = False,
) -> ResolveOptions:
    """Config-derived options with command-line overrides applied."""
    options = ResolveOptions.from_config(config)

    limit_overrides: dict[str, object] = {}
    if max_bytes is not None:
        limit_overrides["max_total_bytes"] = max_bytes
    if max_tokens is not None:
        limit_overrides["max_tokens"] = max_tokens
    if max_files is not None:
        limit_overrides["max_files"] = max_files
    if mode is not None:
        limit_overrides["mode"] = BudgetMode(mode)
    if skip_sensitive:
        limit_overrides["skip_sensitive"] = True

    overrides: dict[str, object] = {"limits": replace(options.limits, **limit_overrides)}
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if deadline is not None:
        overrides["deadline"] = deadline
    if include:
        overrides["include_patterns"] = include
    if exclude:
        overrides["exclude_patterns"] = exclude
    if fail_fast:
        overrides["fail_fast"] = True
    return replace(options, **overrides)


async def _resolve(
    config: ContextPackConfig,
    root: Path | None,
    specs: list[str],
    options: ResolveOptions,
) -> ResolvedBundle:
    async with ContextResolver.from_config(config, root=root) as resolver:
        return await resolver.resolve(specs, options)


def _render_bundle(bundle: ResolvedBundle) -> None:
    report = bundle.report

    table = Table(title="Bundle")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Spec", style="cyan")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    for i, item in enumerate(bundle.items, 1):
        if item.included:
            status = "[green]included[/green]"
            if item.from_cache:
                status += " [dim](cached)[/dim]"
        else:
            status = f"[yellow]{item.omitted_reason}[/yellow]"
        indent = "  " * item.depth
        table.add_row(
            str(i),
            f"{indent}{item.key}",
            item.semantic_type.value,
            format_bytes(item.size_bytes),
            status,
        )
    console.print(table)

    status_style = _STATUS_STYLE[report.status]
    health_style = _HEALTH_STYLE.get(report.health, "white")
    console.print()
    console.print(f"[bold]Status:[/bold] [{status_style}]{report.status.value}[/{status_style}]")
    console.print(f"[bold]Budget:[/bold] {report.state.value}")
    if report.limits is not None:
        limits = report.limits
        console.print(
            f"   Files:  {report.total_files} / {limits.max_files} "
            f"({format_ratio(report.total_files, limits.max_files)})"
        )
        console.print(
            f"   Bytes:  {format_bytes(report.total_bytes)} / "
            f"{format_bytes(limits.max_total_bytes)} "
            f"({format_ratio(report.total_bytes, limits.max_total_bytes)})"
        )
        console.print(
            f"   Tokens: ~{report.estimated_tokens} / {limits.max_tokens} "
            f"({format_ratio(report.estimated_tokens, limits.max_tokens)})"
        )
    console.print(
        f"   Skipped: {report.skipped}  Dropped: {report.dropped}  "
        f"Directories: {report.directories}  Elapsed: {report.elapsed:.2f}s"
    )

    if report.errors:
        console.print("\n[bold red]Errors:[/bold red]")
        for error in report.errors:
            console.print(f"   [red]✗[/red] {error.spec}: {error.message}", highlight=False)
    if report.warnings:
        console.print("\n[bold yellow]Warnings:[/bold yellow]")
        for warning in report.warnings:
            console.print(f"   ⚠ {warning}", highlight=False)
    if report.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for tip in report.recommendations:
            console.print(f"   • {tip}", highlight=False)

    console.print(
        f"\n[{health_style}]● {report.health}[/{health_style}] {report.health_message}"
    )


# =============================================================================
# config
# =============================================================================


@cli.group()
def config() -> None:
    """Manage contextpack configuration."""


@config.command("init")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".contextpack/config.yaml"),
    show_default=True,
    help="Where to write the config file",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: Path, force: bool) -> None:
    """Write the default configuration template."""
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    written = save_default_config(path)
    console.print(f"[green]✓[/green] Wrote {written}")


def main() -> None:
    """Console-script entry point with error handling."""
    try:
        cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except ContextPackError as e:
        handle_error(e)


if __name__ == "__main__":
    main()
