"""
MCP server exposing Magento 2 development tools.

Tool names and argument names follow the magento2-dev MCP tool set, so
existing agent configurations keep working.
"""

import logging
from typing import Annotated, Callable, List, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from . import __version__
from .config import ServerConfig
from .core.plugin_analysis import analyze_project_plugins
from .exceptions import MagentoDevError
from .formatting import format_plugin_analysis
from .magerun import MagerunRunner
from .magerun import tools

logger = logging.getLogger(__name__)

SERVER_NAME = "magento2-dev-mcp-server"

OutputFormat = Annotated[Literal["table", "json", "csv"], Field(description="Output format")]
DiScope = Literal[
    "global", "adminhtml", "frontend", "crontab", "webapi_rest",
    "webapi_soap", "graphql", "doc", "admin",
]


def _call(func: Callable[..., str], *args, **kwargs) -> str:
    """Run a tool body, reporting failures to the client as tool errors"""
    try:
        return func(*args, **kwargs)
    except (MagentoDevError, ValueError) as e:
        logger.error(f"{func.__name__} failed: {e}")
        raise ToolError(str(e)) from e


def register_analysis_tools(mcp: FastMCP, config: ServerConfig) -> None:
    """Register the native DI analysis tools."""

    symbol_cache = str(config.analysis.symbol_cache) if config.analysis.symbol_cache else None

    def plugin_report(class_name: str, method_name: Optional[str]) -> str:
        result = analyze_project_plugins(config.project.root, class_name, method_name, symbol_cache)
        return format_plugin_analysis(result)

    @mcp.tool(
        name="dev-plugin-list",
        description=(
            "List the DI plugins (interceptors) for a class across all scopes, with their "
            "before/around/after methods and execution order. Omit methodName to scan every "
            "public method."
        ),
    )
    def dev_plugin_list(
        className: Annotated[str, Field(description="Fully qualified class name, e.g. Magento\\Catalog\\Model\\Product")],
        methodName: Annotated[Optional[str], Field(description="Method to analyze (optional)")] = None,
    ) -> str:
        # An empty methodName means every public method
        return _call(plugin_report, className, methodName or None)


def register_magerun_tools(mcp: FastMCP, runner: MagerunRunner) -> None:
    """Register the tools backed by n98-magerun2."""

    @mcp.tool(name="get-di-preferences", description="Get Magento 2 dependency injection preferences list using magerun2")
    def get_di_preferences(
        scope: Annotated[DiScope, Field(description="The scope to get DI preferences for")] = "global",
    ) -> str:
        return _call(tools.get_di_preferences, runner, scope)

    # Cache management

    @mcp.tool(name="cache-clean", description="Clear specific Magento 2 cache types or all caches")
    def cache_clean(
        types: Annotated[Optional[List[str]], Field(description="Specific cache types to clean (leave empty for all caches)")] = None,
    ) -> str:
        return _call(tools.cache_clean, runner, types)

    @mcp.tool(name="cache-flush", description="Flush specific Magento 2 cache types or all caches")
    def cache_flush(
        types: Annotated[Optional[List[str]], Field(description="Specific cache types to flush (leave empty for all caches)")] = None,
    ) -> str:
        return _call(tools.cache_flush, runner, types)

    @mcp.tool(name="cache-enable", description="Enable specific Magento 2 cache types")
    def cache_enable(
        types: Annotated[List[str], Field(min_length=1, description="Cache types to enable")],
    ) -> str:
        return _call(tools.cache_enable, runner, types)

    @mcp.tool(name="cache-disable", description="Disable specific Magento 2 cache types")
    def cache_disable(
        types: Annotated[List[str], Field(min_length=1, description="Cache types to disable")],
    ) -> str:
        return _call(tools.cache_disable, runner, types)

    @mcp.tool(name="cache-status", description="Check the status of Magento 2 cache types")
    def cache_status() -> str:
        return _call(tools.cache_status, runner)

    @mcp.tool(name="cache-view", description="Inspect specific cache entries in Magento 2")
    def cache_view(
        key: Annotated[str, Field(description="Cache key to inspect")],
        type: Annotated[Optional[str], Field(description="Cache type (optional)")] = None,
    ) -> str:
        return _call(tools.cache_view, runner, key, type)

    # Modules and themes

    @mcp.tool(name="dev-module-list", description="List all Magento 2 modules and their status")
    def dev_module_list(
        format: OutputFormat = "table",
        enabled: Annotated[bool, Field(description="Show only enabled modules")] = False,
        disabled: Annotated[bool, Field(description="Show only disabled modules")] = False,
    ) -> str:
        return _call(tools.dev_module_list, runner, format, enabled, disabled)

    @mcp.tool(name="dev-module-observer-list", description="List all Magento 2 module observers")
    def dev_module_observer_list(
        format: OutputFormat = "table",
        event: Annotated[Optional[str], Field(description="Filter by specific event name")] = None,
    ) -> str:
        return _call(tools.dev_module_observer_list, runner, format, event)

    @mcp.tool(name="dev-module-create", description="Create and register a new Magento 2 module")
    def dev_module_create(
        vendorNamespace: Annotated[str, Field(description="Namespace (your company prefix)")],
        moduleName: Annotated[str, Field(description="Name of your module")],
        minimal: Annotated[bool, Field(description="Create only module file")] = False,
        addBlocks: Annotated[bool, Field(description="Add blocks")] = False,
        addHelpers: Annotated[bool, Field(description="Add helpers")] = False,
        addModels: Annotated[bool, Field(description="Add models")] = False,
        addSetup: Annotated[bool, Field(description="Add SQL setup")] = False,
        addAll: Annotated[bool, Field(description="Add blocks, helpers and models")] = False,
        enable: Annotated[bool, Field(description="Enable module after creation")] = False,
        modman: Annotated[bool, Field(description="Create all files in folder with a modman file")] = False,
        addReadme: Annotated[bool, Field(description="Add a readme.md file to generated module")] = False,
        addComposer: Annotated[bool, Field(description="Add a composer.json file to generated module")] = False,
        addStrictTypes: Annotated[bool, Field(description="Add strict_types declaration to generated PHP files")] = False,
        authorName: Annotated[Optional[str], Field(description="Author for readme.md or composer.json")] = None,
        authorEmail: Annotated[Optional[str], Field(description="Author email for readme.md or composer.json")] = None,
        description: Annotated[Optional[str], Field(description="Description for readme.md or composer.json")] = None,
    ) -> str:
        return _call(
            tools.dev_module_create, runner, vendorNamespace, moduleName,
            minimal=minimal, add_blocks=addBlocks, add_helpers=addHelpers, add_models=addModels,
            add_setup=addSetup, add_all=addAll, enable=enable, modman=modman,
            add_readme=addReadme, add_composer=addComposer, add_strict_types=addStrictTypes,
            author_name=authorName, author_email=authorEmail, description=description,
        )

    @mcp.tool(name="dev-theme-list", description="List all available Magento 2 themes")
    def dev_theme_list(format: OutputFormat = "table") -> str:
        return _call(tools.dev_theme_list, runner, format)

    # System diagnostics

    @mcp.tool(name="sys-info", description="Get Magento 2 system information")
    def sys_info(format: OutputFormat = "table") -> str:
        return _call(tools.sys_info, runner, format)

    @mcp.tool(name="sys-check", description="Check Magento 2 system requirements and configuration")
    def sys_check() -> str:
        return _call(tools.sys_check, runner)

    # Configuration

    @mcp.tool(name="config-show", description="View Magento 2 system configuration values")
    def config_show(
        path: Annotated[Optional[str], Field(description="Configuration path to show (optional, shows all if not specified)")] = None,
        scope: Annotated[Optional[str], Field(description="Configuration scope (default, website, store)")] = None,
        scopeId: Annotated[Optional[str], Field(description="Scope ID (website ID or store ID)")] = None,
    ) -> str:
        return _call(tools.config_show, runner, path, scope, scopeId)

    @mcp.tool(name="config-set", description="Set Magento 2 system configuration values")
    def config_set(
        path: Annotated[str, Field(description="Configuration path to set")],
        value: Annotated[str, Field(description="Value to set")],
        scope: Annotated[Optional[str], Field(description="Configuration scope (default, website, store)")] = None,
        scopeId: Annotated[Optional[str], Field(description="Scope ID (website ID or store ID)")] = None,
        encrypt: Annotated[bool, Field(description="Encrypt the value")] = False,
    ) -> str:
        return _call(tools.config_set, runner, path, value, scope, scopeId, encrypt)

    @mcp.tool(name="config-store-get", description="Get store-specific Magento 2 configuration values")
    def config_store_get(
        path: Annotated[str, Field(description="Configuration path to get")],
        storeId: Annotated[Optional[str], Field(description="Store ID (optional)")] = None,
    ) -> str:
        return _call(tools.config_store_get, runner, path, storeId)

    @mcp.tool(name="config-store-set", description="Set store-specific Magento 2 configuration values")
    def config_store_set(
        path: Annotated[str, Field(description="Configuration path to set")],
        value: Annotated[str, Field(description="Value to set")],
        storeId: Annotated[Optional[str], Field(description="Store ID (optional)")] = None,
    ) -> str:
        return _call(tools.config_store_set, runner, path, value, storeId)

    # Database

    @mcp.tool(name="db-query", description="Execute SQL queries directly on Magento 2 database")
    def db_query(
        query: Annotated[str, Field(description="SQL query to execute")],
        format: OutputFormat = "table",
    ) -> str:
        return _call(tools.db_query, runner, query, format)

    # Setup and deployment

    @mcp.tool(name="setup-upgrade", description="Run Magento 2 setup upgrade to update database schema and data")
    def setup_upgrade(
        keepGenerated: Annotated[bool, Field(description="Keep generated files during upgrade")] = False,
    ) -> str:
        return _call(tools.setup_upgrade, runner, keepGenerated)

    @mcp.tool(name="setup-di-compile", description="Compile Magento 2 dependency injection configuration")
    def setup_di_compile() -> str:
        return _call(tools.setup_di_compile, runner)

    @mcp.tool(name="setup-db-status", description="Check Magento 2 database status to see if setup:upgrade is needed")
    def setup_db_status() -> str:
        return _call(tools.setup_db_status, runner)

    @mcp.tool(name="setup-static-content-deploy", description="Deploy Magento 2 static content and assets")
    def setup_static_content_deploy(
        languages: Annotated[Optional[List[str]], Field(description="Languages to deploy (e.g., ['en_US', 'de_DE'])")] = None,
        themes: Annotated[Optional[List[str]], Field(description="Themes to deploy")] = None,
        jobs: Annotated[Optional[int], Field(description="Number of parallel jobs")] = None,
        force: Annotated[bool, Field(description="Force deployment even if files exist")] = False,
    ) -> str:
        return _call(tools.setup_static_content_deploy, runner, languages, themes, jobs, force)

    # Store management

    @mcp.tool(name="sys-store-list", description="List all Magento 2 stores, websites, and store views")
    def sys_store_list(format: OutputFormat = "table") -> str:
        return _call(tools.sys_store_list, runner, format)

    @mcp.tool(name="sys-store-config-base-url-list", description="List all base URLs for Magento 2 stores")
    def sys_store_config_base_url_list(format: OutputFormat = "table") -> str:
        return _call(tools.sys_store_config_base_url_list, runner, format)

    @mcp.tool(name="sys-url-list", description="Get all Magento 2 URLs")
    def sys_url_list(
        format: OutputFormat = "table",
        storeId: Annotated[Optional[str], Field(description="Store ID to filter URLs")] = None,
    ) -> str:
        return _call(tools.sys_url_list, runner, format, storeId)

    @mcp.tool(name="sys-website-list", description="List all Magento 2 websites")
    def sys_website_list(format: OutputFormat = "table") -> str:
        return _call(tools.sys_website_list, runner, format)

    # Cron

    @mcp.tool(name="sys-cron-list", description="List all Magento 2 cron jobs and their configuration")
    def sys_cron_list(format: OutputFormat = "table") -> str:
        return _call(tools.sys_cron_list, runner, format)

    @mcp.tool(name="sys-cron-run", description="Run Magento 2 cron jobs")
    def sys_cron_run(
        job: Annotated[Optional[str], Field(description="Specific cron job to run (optional, runs all if not specified)")] = None,
        group: Annotated[Optional[str], Field(description="Cron group to run")] = None,
    ) -> str:
        return _call(tools.sys_cron_run, runner, job, group)


def create_server(config: ServerConfig) -> FastMCP:
    """Build the FastMCP server for the configured project."""
    mcp = FastMCP(SERVER_NAME)
    runner = MagerunRunner(
        config.project.root,
        binary=config.magerun.binary,
        timeout=config.magerun.timeout,
        docker=config.magerun.docker,
    )
    register_analysis_tools(mcp, config)
    register_magerun_tools(mcp, runner)
    logger.info(f"{SERVER_NAME} {__version__} ready for {config.project.root}")
    return mcp
