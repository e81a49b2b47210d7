"""Human-readable rendering of plugin analysis results"""

import json
from typing import Any, Dict, List


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_scope_block(scope: str, scope_data: Dict[str, Any]) -> List[str]:
    """Plugins and numbered execution order of one scope"""
    lines = ["", f"  Scope: {scope} ({_plural(scope_data['pluginCount'], 'plugin')})"]

    for plugin in scope_data["plugins"]:
        lines.append("")
        lines.append(f"    [{plugin['pluginName']}]")
        lines.append(f"      Class: {plugin['pluginType']}")
        lines.append(f"      Target: {plugin['targetType']}")
        lines.append(f"      Sort Order: {plugin['sortOrder']}")
        if plugin.get("module"):
            lines.append(f"      Module: {plugin['module']}")
        lines.append(f"      Source: {plugin['sourceFile']}")
        if plugin.get("methods"):
            lines.append(f"      Methods: {', '.join(plugin['methods'].values())}")
        if plugin.get("reflectionError"):
            lines.append(f"      ⚠ {plugin['reflectionError']}")

    lines.append("")
    lines.append("    Execution order:")
    for number, entry in enumerate(scope_data["executionOrder"], start=1):
        if entry["step"] == "original":
            lines.append(f"      {number}. [ORIGINAL] {entry['class']}::{entry['method']}()")
        else:
            lines.append(
                f"      {number}. [{entry['step'].upper()}] {entry['pluginName']} → "
                f"{entry['class']}::{entry['method']}() (sortOrder: {entry['sortOrder']})"
            )
    return lines


def _hierarchy_and_warnings(data: Dict[str, Any]) -> List[str]:
    lines = ["", "Class hierarchy:"]
    lines.extend(f"  - {name}" for name in data["classHierarchy"])
    if data.get("warnings"):
        lines.append("")
        lines.append("Warnings:")
        lines.extend(f"  ⚠ {warning}" for warning in data["warnings"])
    return lines


def format_plugin_analysis(data: Dict[str, Any]) -> str:
    """Render an analysis result followed by its raw JSON"""
    if "methodResults" not in data:
        target = f"{data['targetClass']}::{data['targetMethod']}()"
        scopes = list(data.get("scopeResults") or {})
        lines = [
            "=== Plugin Analysis ===",
            f"Target: {target}",
            f"Total plugins found: {data['totalPluginCount']}",
            f"Scopes with plugins: {', '.join(scopes) if scopes else 'none'}",
        ]
        lines.extend(_hierarchy_and_warnings(data))

        if scopes:
            for scope in scopes:
                lines.extend(format_scope_block(scope, data["scopeResults"][scope]))
        else:
            lines.append("")
            lines.append(f"No plugins found for {target} in any scope.")
    else:
        lines = [
            "=== Plugin Analysis (all methods) ===",
            f"Target class: {data['targetClass']}",
            f"Methods checked: {data['methodsChecked']}",
            f"Methods with plugins: {data['methodsWithPlugins']}",
            f"Total plugin instances: {data['totalPluginCount']}",
        ]
        lines.extend(_hierarchy_and_warnings(data))

        method_results = data.get("methodResults") or {}
        if method_results:
            for method, method_data in method_results.items():
                lines.append("")
                lines.append(
                    f"--- {data['targetClass']}::{method}() "
                    f"({_plural(method_data['totalPluginCount'], 'plugin instance')}) ---"
                )
                for scope, scope_data in method_data["scopeResults"].items():
                    lines.extend(format_scope_block(scope, scope_data))
        else:
            lines.append("")
            lines.append(f"No plugins found for any method of {data['targetClass']} in any scope.")

    lines.append("")
    lines.append("=== Raw JSON ===")
    return "\n".join(lines) + "\n" + json.dumps(data, indent=2, ensure_ascii=False)
