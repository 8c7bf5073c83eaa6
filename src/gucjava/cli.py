"""gucjava command-line interface."""

from __future__ import annotations

import logging
import sys
import tomllib
from enum import Enum
from pathlib import Path

import click

from gucjava import __version__
from gucjava.config import GucJavaConfig, resolve_config
from gucjava.errors import Diagnostic, DiagnosticRenderer
from gucjava.lexer import lex
from gucjava.parser import parse
from gucjava.tokens import format_token

logger = logging.getLogger(__name__)


def _read_source(file: str) -> str:
    """Read a source file, or stdin for ``-``."""
    if file == "-":
        return sys.stdin.read()
    try:
        return Path(file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"error: cannot read {file}: {e}", err=True)
        raise SystemExit(1)


def _load_config(path: Path) -> GucJavaConfig:
    try:
        return resolve_config(path)
    except (OSError, tomllib.TOMLDecodeError) as e:
        click.echo(f"error: invalid gucjava.toml: {e}", err=True)
        raise SystemExit(1)


def _report(diagnostics: list[Diagnostic], source: str, *, color: bool) -> None:
    renderer = DiagnosticRenderer(color=color)
    for diag in diagnostics:
        click.echo(renderer.render(diag, source), err=True)


@click.group()
@click.version_option(__version__, prog_name="gucjava")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Lexer and parser tools for the gucjava language."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command()
@click.argument("file", default="-")
@click.option("--start", type=int, default=None, help="Offset where lexing starts.")
@click.option("--end", type=int, default=None, help="Offset where lexing stops.")
def tokenize(file: str, start: int | None, end: int | None) -> None:
    """Print the tokens of FILE, one per line (``-`` reads stdin)."""
    source = _read_source(file)
    text = source[start:end]
    tokens = lex(text)
    logger.debug("lexed %d tokens from %s", len(tokens), file)
    for token in tokens:
        click.echo(format_token(token), nl=False)


@main.command()
@click.argument("file", default="-")
@click.option("--color/--no-color", default=None, help="Colorize diagnostics.")
def view(file: str, color: bool | None) -> None:
    """View the AST of a source file."""
    config = _load_config(Path.cwd() if file == "-" else Path(file))
    source = _read_source(file)
    source_id = "<stdin>" if file == "-" else file
    root, diagnostics = parse(
        source_id, source, max_nesting_depth=config.parser.max_nesting_depth,
    )
    _dump_ast(root)
    _report(diagnostics, source, color=config.output.color if color is None else color)
    if diagnostics:
        raise SystemExit(1)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--color/--no-color", default=None, help="Colorize diagnostics.")
def check(path: str, color: bool | None) -> None:
    """Parse every source file under PATH and report diagnostics."""
    target = Path(path)
    config = _load_config(target)
    use_color = config.output.color if color is None else color

    if target.is_dir():
        files = sorted(
            p for p in target.rglob("*")
            if p.is_file() and p.suffix in config.files.extensions
        )
    else:
        files = [target]
    if not files:
        click.echo("warning: no source files found", err=True)
        return

    error_count = 0
    for source_file in files:
        source = _read_source(str(source_file))
        _, diagnostics = parse(
            str(source_file), source,
            max_nesting_depth=config.parser.max_nesting_depth,
        )
        logger.debug("%s: %d diagnostic(s)", source_file, len(diagnostics))
        _report(diagnostics, source, color=use_color)
        error_count += len(diagnostics)

    if error_count:
        click.echo(f"checked {len(files)} file(s), {error_count} error(s)", err=True)
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command()
def lsp() -> None:
    """Start the gucjava language server."""
    from gucjava.lsp import main as lsp_main

    lsp_main()


def _dump_ast(root: object) -> None:
    """Print a readable AST dump, walking the tree with an explicit stack."""
    # Entries are (depth, item, is_line); line entries are echoed as they are.
    stack: list[tuple[int, object, bool]] = [(0, root, False)]
    while stack:
        depth, node, is_line = stack.pop()
        if is_line:
            click.echo(node)
            continue
        indent = "  " * depth
        name = type(node).__name__
        if not hasattr(node, "__dataclass_fields__"):
            click.echo(f"{indent}{name}: {node!r}")
            continue

        rng = getattr(node, "range", None)
        click.echo(f"{indent}{name} @ {rng.start}-{rng.end}" if rng else f"{indent}{name}")
        pending: list[tuple[int, object, bool]] = []
        for field_name in node.__dataclass_fields__:  # type: ignore[attr-defined]
            if field_name == "range":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    pending.append((depth, f"{indent}  {field_name}:", True))
                    pending.extend((depth + 2, item, False) for item in value)
                else:
                    pending.append((depth, f"{indent}  {field_name}: []", True))
            elif hasattr(value, "__dataclass_fields__"):
                pending.append((depth, f"{indent}  {field_name}:", True))
                pending.append((depth + 2, value, False))
            elif isinstance(value, Enum):
                pending.append((depth, f"{indent}  {field_name}: {value.value}", True))
            elif value is not None:
                pending.append((depth, f"{indent}  {field_name}: {value!r}", True))
        stack.extend(reversed(pending))
