"""
magerun2 backed tool implementations.

Each function builds the magerun2 argument vector for one MCP tool, runs it
and renders the text returned to the client. Failures propagate as
MagerunError subclasses.
"""

import json
from typing import Any, List, Optional

from .executor import MagerunRunner

OUTPUT_FORMATS = ("table", "json", "csv")
DI_SCOPES = (
    "global", "adminhtml", "frontend", "crontab", "webapi_rest",
    "webapi_soap", "graphql", "doc", "admin",
)


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported format '{output_format}', expected one of {', '.join(OUTPUT_FORMATS)}")


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2)


def _plain(runner: MagerunRunner, args: List[str], title: str) -> str:
    result = runner.run(args)
    return f"{title}:\n\n{result.data}"


def _listing(runner: MagerunRunner, command: str, label: str, output_format: str,
             extra: Optional[List[str]] = None) -> str:
    """Run a list command supporting --format; JSON output is re-indented"""
    _check_format(output_format)
    args = [command, f"--format={output_format}", *(extra or [])]
    is_json = output_format == "json"
    result = runner.run(args, parse_json=is_json)
    body = _dump(result.data) if is_json else result.data
    return f"{label} ({output_format} format):\n\n{body}"


# DI

def get_di_preferences(runner: MagerunRunner, scope: str = "global") -> str:
    if scope not in DI_SCOPES:
        raise ValueError(f"Unsupported scope '{scope}'")
    result = runner.run(["dev:di:preferences:list", "--format=json", scope], parse_json=True)
    count = len(result.data) if isinstance(result.data, (list, dict)) else 0
    return f"Found {count} DI preferences for scope '{scope}':\n\n{_dump(result.data)}"


# Cache

def cache_clean(runner: MagerunRunner, types: Optional[List[str]] = None) -> str:
    return _plain(runner, ["cache:clean", *(types or [])], "Cache clean completed")


def cache_flush(runner: MagerunRunner, types: Optional[List[str]] = None) -> str:
    return _plain(runner, ["cache:flush", *(types or [])], "Cache flush completed")


def cache_enable(runner: MagerunRunner, types: List[str]) -> str:
    if not types:
        raise ValueError("At least one cache type is required")
    return _plain(runner, ["cache:enable", *types], "Cache types enabled")


def cache_disable(runner: MagerunRunner, types: List[str]) -> str:
    if not types:
        raise ValueError("At least one cache type is required")
    return _plain(runner, ["cache:disable", *types], "Cache types disabled")


def cache_status(runner: MagerunRunner) -> str:
    return _plain(runner, ["cache:status"], "Cache status")


def cache_view(runner: MagerunRunner, key: str, cache_type: Optional[str] = None) -> str:
    args = ["cache:view"]
    if cache_type:
        args.append(f"--type={cache_type}")
    args.append(key)
    return _plain(runner, args, f'Cache entry for key "{key}"')


# Modules and themes

def dev_module_list(runner: MagerunRunner, output_format: str = "table",
                    enabled: bool = False, disabled: bool = False) -> str:
    extra = []
    if enabled:
        extra.append("--enabled")
    elif disabled:
        extra.append("--disabled")
    return _listing(runner, "dev:module:list", "Module list", output_format, extra)


def dev_module_observer_list(runner: MagerunRunner, output_format: str = "table",
                             event: Optional[str] = None) -> str:
    return _listing(runner, "dev:module:observer:list", "Observer list", output_format,
                    [event] if event else None)


MODULE_CREATE_FLAGS = (
    ("minimal", "--minimal"),
    ("add_blocks", "--add-blocks"),
    ("add_helpers", "--add-helpers"),
    ("add_models", "--add-models"),
    ("add_setup", "--add-setup"),
    ("add_all", "--add-all"),
    ("enable", "--enable"),
    ("modman", "--modman"),
    ("add_readme", "--add-readme"),
    ("add_composer", "--add-composer"),
    ("add_strict_types", "--add-strict-types"),
)

MODULE_CREATE_OPTIONS = (
    ("author_name", "--author-name"),
    ("author_email", "--author-email"),
    ("description", "--description"),
)


def dev_module_create(runner: MagerunRunner, vendor_namespace: str, module_name: str, **options) -> str:
    """Scaffold a module; ``options`` are the flag and option names of MODULE_CREATE_*"""
    args = ["dev:module:create", vendor_namespace, module_name]
    for name, flag in MODULE_CREATE_FLAGS:
        if options.get(name):
            args.append(flag)
    for name, option in MODULE_CREATE_OPTIONS:
        if options.get(name):
            args.append(f"{option}={options[name]}")
    return _plain(runner, args, f"Module {vendor_namespace}_{module_name} created successfully")


def dev_theme_list(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "dev:theme:list", "Theme list", output_format)


# System

def sys_info(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "sys:info", "System information", output_format)


def sys_check(runner: MagerunRunner) -> str:
    return _plain(runner, ["sys:check"], "System check results")


# Configuration

def _scope_options(scope: Optional[str], scope_id: Optional[str]) -> List[str]:
    options = []
    if scope:
        options.append(f"--scope={scope}")
    if scope_id:
        options.append(f"--scope-id={scope_id}")
    return options


def config_show(runner: MagerunRunner, path: Optional[str] = None,
                scope: Optional[str] = None, scope_id: Optional[str] = None) -> str:
    args = ["config:show"]
    if path:
        args.append(path)
    args.extend(_scope_options(scope, scope_id))
    return _plain(runner, args, "Configuration values")


def config_set(runner: MagerunRunner, path: str, value: str, scope: Optional[str] = None,
               scope_id: Optional[str] = None, encrypt: bool = False) -> str:
    args = ["config:set", path, value, *_scope_options(scope, scope_id)]
    if encrypt:
        args.append("--encrypt")
    return _plain(runner, args, "Configuration set successfully")


def config_store_get(runner: MagerunRunner, path: str, store_id: Optional[str] = None) -> str:
    args = ["config:store:get", path]
    if store_id:
        args.append(f"--store-id={store_id}")
    return _plain(runner, args, "Store configuration value")


def config_store_set(runner: MagerunRunner, path: str, value: str, store_id: Optional[str] = None) -> str:
    args = ["config:store:set", path, value]
    if store_id:
        args.append(f"--store-id={store_id}")
    return _plain(runner, args, "Store configuration set successfully")


# Database

def db_query(runner: MagerunRunner, query: str, output_format: str = "table") -> str:
    return _listing(runner, "db:query", "Query results", output_format, [query])


# Setup

def setup_upgrade(runner: MagerunRunner, keep_generated: bool = False) -> str:
    args = ["setup:upgrade"]
    if keep_generated:
        args.append("--keep-generated")
    return _plain(runner, args, "Setup upgrade completed")


def setup_di_compile(runner: MagerunRunner) -> str:
    return _plain(runner, ["setup:di:compile"], "DI compilation completed")


def setup_db_status(runner: MagerunRunner) -> str:
    return _plain(runner, ["setup:db:status"], "Database status")


def setup_static_content_deploy(runner: MagerunRunner, languages: Optional[List[str]] = None,
                                themes: Optional[List[str]] = None, jobs: Optional[int] = None,
                                force: bool = False) -> str:
    args = ["setup:static-content:deploy", *(languages or [])]
    args.extend(f"--theme={theme}" for theme in themes or [])
    if jobs:
        args.append(f"--jobs={jobs}")
    if force:
        args.append("--force")
    return _plain(runner, args, "Static content deployment completed")


# Stores

def sys_store_list(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "sys:store:list", "Store list", output_format)


def sys_store_config_base_url_list(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "sys:store:config:base-url:list", "Base URL list", output_format)


def sys_url_list(runner: MagerunRunner, output_format: str = "table", store_id: Optional[str] = None) -> str:
    return _listing(runner, "sys:url:list", "URL list", output_format,
                    [f"--store-id={store_id}"] if store_id else None)


def sys_website_list(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "sys:website:list", "Website list", output_format)


# Cron

def sys_cron_list(runner: MagerunRunner, output_format: str = "table") -> str:
    return _listing(runner, "sys:cron:list", "Cron job list", output_format)


def sys_cron_run(runner: MagerunRunner, job: Optional[str] = None, group: Optional[str] = None) -> str:
    args = ["sys:cron:run"]
    if job:
        args.append(job)
    if group:
        args.append(f"--group={group}")
    return _plain(runner, args, "Cron execution completed")
