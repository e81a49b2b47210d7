"""
DI plugin (interceptor) analysis.

Reconstructs which plugins Magento's object manager would wrap around a
class method in every configuration scope, and the order the resulting
interceptor chain runs in.

Pipeline per request::

    hierarchy -> scope resolution -> method filter -> execution order

Everything is recomputed from the files on disk for each request.
"""

import logging
from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional

from ..exceptions import AnalysisError, TypeNotFoundError
from ..parsers.di_xml import parse_plugin_declarations
from .project import MagentoProject
from .reflection import TypeInspector, SymbolIndexInspector
from .schema import (
    SCOPES, GLOBAL_SCOPE, HookKind, StepKind,
    PluginDeclaration, EffectivePlugin, ExecutionStep, ReflectedType,
    normalize_class_name,
)

logger = logging.getLogger(__name__)

ScopeMatches = Dict[str, List[PluginDeclaration]]


def build_class_hierarchy(class_name: str, inspector: TypeInspector):
    """Return (hierarchy, reflected type or None, warnings) for the target class"""
    target = normalize_class_name(class_name)
    warnings: List[str] = []
    try:
        reflected = inspector.reflect(class_name)
    except TypeNotFoundError as e:
        warnings.append(
            f"Could not reflect class '{class_name}': {e}. "
            "Analysis will use the literal class name only."
        )
        return [target], None, warnings

    hierarchy = [target, *reflected.ancestors, *reflected.interfaces]
    return [normalize_class_name(name) for name in hierarchy], reflected, warnings


def resolve_scope_plugins(project: MagentoProject, hierarchy: List[str],
                          global_plugins: Optional[Dict[str, PluginDeclaration]] = None) -> ScopeMatches:
    """Per scope, the enabled plugin declarations that target a hierarchy member.

    Area di.xml files replace global entries with the same key outright,
    unlike the refinement merge applied while parsing a single file set.
    Scopes without matches are left out.
    """
    if global_plugins is None:
        global_plugins = parse_plugin_declarations(project.collect_di_files(GLOBAL_SCOPE))

    members = set(hierarchy)
    matches: ScopeMatches = {}

    for scope in SCOPES:
        effective = dict(global_plugins)
        if scope != GLOBAL_SCOPE:
            area_files = project.collect_area_di_files(scope)
            if area_files:
                effective.update(parse_plugin_declarations(area_files))

        matched = []
        for plugin in effective.values():
            if plugin.is_disabled:
                continue
            target = normalize_class_name(plugin.target_type)
            if target in members:
                matched.append(replace(plugin, target_type=target))

        if matched:
            matches[scope] = matched

    return matches


def hook_method_names(method_name: str) -> Dict[HookKind, str]:
    """beforeX / aroundX / afterX for method ``x`` (first letter upper-cased only)"""
    capitalized = method_name[:1].upper() + method_name[1:]
    return {kind: f"{kind.value}{capitalized}" for kind in HookKind}


def filter_plugins_by_method(plugins: List[PluginDeclaration], method_name: str,
                             project: MagentoProject, inspector: TypeInspector,
                             scope: Optional[str] = None) -> List[EffectivePlugin]:
    """Keep plugins that hook ``method_name``, sorted by sortOrder.

    A plugin whose type is missing or cannot be inspected is kept with all
    three hooks assumed, and the cause recorded in ``reflection_error``.
    """
    hooks = hook_method_names(method_name)
    filtered: List[EffectivePlugin] = []

    for plugin in plugins:
        reflection_error = None
        if plugin.plugin_type:
            try:
                plugin_class = inspector.reflect(plugin.plugin_type)
                found = {kind.value: name for kind, name in hooks.items() if plugin_class.has_method(name)}
            except TypeNotFoundError as e:
                reflection_error = f"Could not reflect plugin class '{plugin.plugin_type}': {e}"
                found = {kind.value: name for kind, name in hooks.items()}
        else:
            reflection_error = f"Plugin '{plugin.plugin_name}' has no type specified"
            found = {kind.value: name for kind, name in hooks.items()}

        if not found:
            continue

        filtered.append(EffectivePlugin(
            **asdict(plugin),
            methods=found,
            module=project.determine_module(plugin.source_file),
            reflection_error=reflection_error,
            scope=scope,
        ))

    # sorted() is stable, so equal sortOrders keep parse order
    return sorted(filtered, key=lambda p: p.sort_order)


def build_execution_order(plugins: List[EffectivePlugin], class_name: str,
                          method_name: str) -> List[ExecutionStep]:
    """Synthesize the interceptor call sequence for sorted plugins"""

    def steps(kind: HookKind, step: StepKind, ordered: List[EffectivePlugin]) -> List[ExecutionStep]:
        return [
            ExecutionStep(step, p.plugin_name, p.plugin_type, p.methods[kind.value], p.sort_order)
            for p in ordered if p.has_hook(kind)
        ]

    order = steps(HookKind.BEFORE, StepKind.BEFORE, plugins)
    order += steps(HookKind.AROUND, StepKind.AROUND_ENTERING, plugins)
    order.append(ExecutionStep(StepKind.ORIGINAL, None, class_name, method_name, None))
    # Around hooks unwind innermost first
    order += steps(HookKind.AROUND, StepKind.AROUND_EXITING, list(reversed(plugins)))
    order += steps(HookKind.AFTER, StepKind.AFTER, plugins)
    return order


def analyze_method(method_name: str, scope_matches: ScopeMatches, class_name: str,
                   project: MagentoProject, inspector: TypeInspector) -> Dict[str, Dict[str, Any]]:
    """Scope results for one method; scopes where nothing hooks it are omitted"""
    results = {}
    for scope, matched in scope_matches.items():
        plugins = filter_plugins_by_method(matched, method_name, project, inspector, scope)
        if not plugins:
            continue

        results[scope] = {
            "plugins": [p.to_dict() for p in plugins],
            "executionOrder": [s.to_dict() for s in build_execution_order(plugins, class_name, method_name)],
            "pluginCount": len(plugins),
        }
    return results


def _count_plugins(scope_results: Dict[str, Dict[str, Any]]) -> int:
    return sum(result["pluginCount"] for result in scope_results.values())


class PluginAnalyzer:
    """Analyze plugins for a class across all scopes"""

    def __init__(self, project: MagentoProject, inspector: TypeInspector):
        self.project = project
        self.inspector = inspector

    def analyze(self, class_name: str, method_name: Optional[str] = None) -> Dict[str, Any]:
        """Analyze one method, or every public method when ``method_name`` is None.

        Raises:
            AnalysisError: no method given and the class cannot be inspected
        """
        hierarchy, reflected, warnings = build_class_hierarchy(class_name, self.inspector)
        methods = self._methods_to_scan(class_name, method_name, reflected, warnings)

        scope_matches = resolve_scope_plugins(self.project, hierarchy)
        target_class = normalize_class_name(class_name)
        logger.debug(
            f"{target_class}: {sum(len(m) for m in scope_matches.values())} plugin declarations "
            f"matched in {len(scope_matches)} scopes"
        )

        if method_name is not None:
            scope_results = analyze_method(method_name, scope_matches, target_class, self.project, self.inspector)
            return {
                "targetClass": target_class,
                "targetMethod": method_name,
                "classHierarchy": hierarchy,
                "scopeResults": scope_results,
                "totalPluginCount": _count_plugins(scope_results),
                "warnings": warnings,
            }

        method_results = {}
        total = 0
        for method in methods:
            scope_results = analyze_method(method, scope_matches, target_class, self.project, self.inspector)
            if not scope_results:
                continue
            method_total = _count_plugins(scope_results)
            method_results[method] = {
                "scopeResults": scope_results,
                "totalPluginCount": method_total,
            }
            total += method_total

        return {
            "targetClass": target_class,
            "targetMethod": None,
            "classHierarchy": hierarchy,
            "methodResults": method_results,
            "methodsChecked": len(methods),
            "methodsWithPlugins": len(method_results),
            "totalPluginCount": total,
            "warnings": warnings,
        }

    @staticmethod
    def _methods_to_scan(class_name: str, method_name: Optional[str],
                         reflected: Optional[ReflectedType], warnings: List[str]) -> List[str]:
        if method_name is not None:
            return [method_name]
        if reflected is None:
            raise AnalysisError(
                "Cannot determine methods: class could not be reflected and no methodName provided."
            )

        methods = list(reflected.public_methods)
        if not methods:
            warnings.append(f"Class '{class_name}' has no public methods.")
        return methods


def analyze_project_plugins(root, class_name: str, method_name: Optional[str] = None,
                            symbol_cache: Optional[str] = None) -> Dict[str, Any]:
    """Load the project at ``root`` and analyze ``class_name`` in it"""
    project = MagentoProject.load(root)
    inspector = SymbolIndexInspector.for_project(project, symbol_cache)
    try:
        return PluginAnalyzer(project, inspector).analyze(class_name, method_name)
    finally:
        inspector.close()
