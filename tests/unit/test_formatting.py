"""Tests for the plugin analysis text report"""

import json

from magento_dev_mcp.formatting import format_plugin_analysis, format_scope_block

SCOPE_DATA = {
    "plugins": [
        {
            "pluginName": "p1",
            "pluginType": "Acme\\Plugin",
            "targetType": "Foo\\Bar",
            "sortOrder": 10,
            "disabled": "",
            "sourceFile": "/m/app/code/Acme/Core/etc/di.xml",
            "methods": {"before": "beforeSave", "after": "afterSave"},
            "module": "Acme_Core",
            "scope": "global",
        },
    ],
    "executionOrder": [
        {"step": "before", "pluginName": "p1", "class": "Acme\\Plugin", "method": "beforeSave", "sortOrder": 10},
        {"step": "original", "pluginName": None, "class": "Foo\\Bar", "method": "save", "sortOrder": None},
        {"step": "after", "pluginName": "p1", "class": "Acme\\Plugin", "method": "afterSave", "sortOrder": 10},
    ],
    "pluginCount": 1,
}


def test_scope_block():
    lines = format_scope_block("global", SCOPE_DATA)

    assert lines == [
        "",
        "  Scope: global (1 plugin)",
        "",
        "    [p1]",
        "      Class: Acme\\Plugin",
        "      Target: Foo\\Bar",
        "      Sort Order: 10",
        "      Module: Acme_Core",
        "      Source: /m/app/code/Acme/Core/etc/di.xml",
        "      Methods: beforeSave, afterSave",
        "",
        "    Execution order:",
        "      1. [BEFORE] p1 → Acme\\Plugin::beforeSave() (sortOrder: 10)",
        "      2. [ORIGINAL] Foo\\Bar::save()",
        "      3. [AFTER] p1 → Acme\\Plugin::afterSave() (sortOrder: 10)",
    ]


def test_reflection_error_and_missing_module():
    plugin = dict(SCOPE_DATA["plugins"][0], module=None, reflectionError="Plugin 'p1' has no type specified")
    lines = format_scope_block("frontend", dict(SCOPE_DATA, plugins=[plugin, plugin], pluginCount=2))

    assert lines[1] == "  Scope: frontend (2 plugins)"
    assert not any(line.strip().startswith("Module:") for line in lines)
    assert lines.count("      ⚠ Plugin 'p1' has no type specified") == 2


def test_single_method_report():
    data = {
        "targetClass": "Foo\\Bar",
        "targetMethod": "save",
        "classHierarchy": ["Foo\\Bar", "Foo\\BarInterface"],
        "scopeResults": {"global": SCOPE_DATA},
        "totalPluginCount": 1,
        "warnings": [],
    }

    text = format_plugin_analysis(data)
    report, raw = text.split("\n=== Raw JSON ===\n")

    assert report.splitlines()[:7] == [
        "=== Plugin Analysis ===",
        "Target: Foo\\Bar::save()",
        "Total plugins found: 1",
        "Scopes with plugins: global",
        "",
        "Class hierarchy:",
        "  - Foo\\Bar",
    ]
    assert "Warnings:" not in report
    assert report.endswith("\n")
    assert json.loads(raw) == data


def test_single_method_without_plugins_lists_warnings():
    data = {
        "targetClass": "Unknown\\Thing",
        "targetMethod": "run",
        "classHierarchy": ["Unknown\\Thing"],
        "scopeResults": {},
        "totalPluginCount": 0,
        "warnings": ["Could not reflect class 'Unknown\\Thing': nope. Analysis will use the literal class name only."],
    }

    text = format_plugin_analysis(data)

    assert "Scopes with plugins: none" in text
    assert "Warnings:\n  ⚠ Could not reflect class 'Unknown\\Thing'" in text
    assert "No plugins found for Unknown\\Thing::run() in any scope." in text


def test_report_shape_decides_layout_not_method_name():
    data = {
        "targetClass": "Foo\\Bar",
        "targetMethod": "",
        "classHierarchy": ["Foo\\Bar"],
        "scopeResults": {},
        "totalPluginCount": 0,
        "warnings": [],
    }

    text = format_plugin_analysis(data)

    assert text.startswith("=== Plugin Analysis ===\nTarget: Foo\\Bar::()\n")
    assert "Methods checked" not in text


def test_all_methods_report():
    data = {
        "targetClass": "Foo\\Bar",
        "targetMethod": None,
        "classHierarchy": ["Foo\\Bar"],
        "methodResults": {"save": {"scopeResults": {"global": SCOPE_DATA}, "totalPluginCount": 1}},
        "methodsChecked": 3,
        "methodsWithPlugins": 1,
        "totalPluginCount": 1,
        "warnings": [],
    }

    text = format_plugin_analysis(data)

    assert text.startswith(
        "=== Plugin Analysis (all methods) ===\n"
        "Target class: Foo\\Bar\n"
        "Methods checked: 3\n"
        "Methods with plugins: 1\n"
        "Total plugin instances: 1\n"
    )
    assert "--- Foo\\Bar::save() (1 plugin instance) ---" in text
    assert "  Scope: global (1 plugin)" in text


def test_all_methods_report_without_results():
    data = {
        "targetClass": "Foo\\Bar",
        "targetMethod": None,
        "classHierarchy": ["Foo\\Bar"],
        "methodResults": {},
        "methodsChecked": 0,
        "methodsWithPlugins": 0,
        "totalPluginCount": 0,
        "warnings": ["Class 'Foo\\Bar' has no public methods."],
    }

    text = format_plugin_analysis(data)

    assert "No plugins found for any method of Foo\\Bar in any scope." in text
    assert "  ⚠ Class 'Foo\\Bar' has no public methods." in text
