#!/usr/bin/env python3
"""
Command-line interface for the Magento 2 development MCP server.
"""

import click
import json
import sys
from pathlib import Path
from typing import Tuple
import logging

import yaml
from tqdm import tqdm

from . import __version__
from .config import DEFAULT_CONFIG_FILE, ServerConfig, load_server_config
from .core.plugin_analysis import analyze_project_plugins
from .core.project import MagentoProject
from .exceptions import MagentoDevError
from .formatting import format_plugin_analysis
from .parsers.php_symbols import PHPSymbolCollector
from .server import create_server
from .symbol_table import SymbolTable

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_SYMBOL_CACHE = Path("var") / "magento-dev-mcp" / "symbols.db"

logger = logging.getLogger(__name__)


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name='magento-dev-mcp')
@click.option('--config', '-c', default=DEFAULT_CONFIG_FILE, help='Configuration file (YAML or JSON)')
@click.option('--project-dir', '-d', envvar='MAGENTO_ROOT', default=None,
              help='Magento project root (defaults to the configured root or the current directory)')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config, project_dir, verbose):
    """Magento 2 development tools for AI agents"""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        try:
            server_config = load_server_config(config_path)
        except (ValueError, yaml.YAMLError) as e:
            _fail(f"Error: invalid configuration {config_path}: {e}")
    elif config != DEFAULT_CONFIG_FILE:
        _fail(f"Error: Configuration file not found: {config_path}")
    else:
        server_config = ServerConfig.for_project(Path.cwd())

    if project_dir:
        server_config.project.root = Path(project_dir).resolve()

    # stdout carries the MCP transport, so logs go to stderr
    level = logging.DEBUG if verbose else getattr(logging, server_config.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)
    logging.getLogger("mcp").setLevel(logging.WARNING)

    ctx.obj['config'] = server_config


@cli.command()
@click.pass_context
def serve(ctx):
    """Run the MCP server on stdio"""
    config = ctx.obj['config']
    mcp = create_server(config)
    logger.info(f"Serving Magento 2 development tools for {config.project.root}")
    mcp.run(transport="stdio")


@cli.command()
@click.argument('class_name')
@click.argument('method_name', required=False)
@click.option('--json', 'as_json', is_flag=True, help='Print the raw analysis result as JSON')
@click.pass_context
def plugins(ctx, class_name, method_name, as_json):
    """List DI plugins for CLASS_NAME (all public methods unless METHOD_NAME is given)"""
    config = ctx.obj['config']
    symbol_cache = str(config.analysis.symbol_cache) if config.analysis.symbol_cache else None

    try:
        result = analyze_project_plugins(config.project.root, class_name, method_name or None, symbol_cache)
    except MagentoDevError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        click.echo(format_plugin_analysis(result))


@cli.command()
@click.pass_context
def modules(ctx):
    """List enabled modules in merge order"""
    config = ctx.obj['config']
    try:
        project = MagentoProject.load(config.project.root)
    except MagentoDevError as e:
        _fail(str(e))

    if not project.module_paths:
        click.echo("No enabled modules found")
        return

    width = max(len(name) for name in project.module_paths)
    for name, path in project.module_paths.items():
        click.echo(f"{name.ljust(width)}  {path}")
    click.echo(f"\n{len(project.module_paths)} enabled modules")


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path(exists=True))
@click.option('--cache', 'cache_path', default=None,
              help='Symbol cache file (defaults to analysis.symbol_cache or var/magento-dev-mcp/symbols.db)')
@click.pass_context
def index(ctx, paths: Tuple[str, ...], cache_path):
    """Pre-build the PHP symbol cache used by plugin analysis"""
    config = ctx.obj['config']
    root = Path(config.project.root)

    if cache_path is None:
        cache_path = config.analysis.symbol_cache or root / DEFAULT_SYMBOL_CACHE

    if not paths:
        try:
            project = MagentoProject.load(root)
        except MagentoDevError as e:
            _fail(str(e))
        paths = tuple(project.module_paths.values())

    php_files = []
    for path in paths:
        path = Path(path)
        if path.is_file():
            php_files.append(path)
        else:
            php_files.extend(sorted(path.rglob('*.php')))

    if not php_files:
        click.echo("No PHP files to index")
        return

    click.echo(f"Indexing {len(php_files)} PHP files into {cache_path}...")
    symbol_table = SymbolTable(str(cache_path))
    collector = PHPSymbolCollector(symbol_table)
    try:
        parsed, errors = collector.parse_files(tqdm(php_files, desc="Indexing", unit="file"))
        stats = symbol_table.get_stats()
    finally:
        symbol_table.close()

    click.echo("\n✓ Indexing complete!")
    click.echo(f"  Files parsed: {parsed} ({len(php_files) - parsed - len(errors)} unchanged)")
    click.echo(f"  Symbols: {stats['total_symbols']}")
    if errors:
        click.echo(f"  Errors: {len(errors)}")
        for error in errors[:20]:
            click.echo(f"    - {error}", err=True)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == '__main__':
    main()
