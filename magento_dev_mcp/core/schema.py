"""
Core data definitions for the DI plugin analysis.

Field names produced by the ``to_dict`` methods are consumed by report
renderers and MCP clients, so they keep the camelCase names of the JSON
result format.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple, FrozenSet
from enum import Enum


SCOPES: Tuple[str, ...] = (
    "global",
    "adminhtml",
    "frontend",
    "crontab",
    "webapi_rest",
    "webapi_soap",
    "graphql",
)

GLOBAL_SCOPE = "global"

# Module attribution for the project-level app/etc/di.xml
ROOT_OVERRIDE_MODULE = "app/etc"


class HookKind(Enum):
    """Interception hook kinds, in the order they are looked up"""
    BEFORE = "before"
    AROUND = "around"
    AFTER = "after"


class StepKind(Enum):
    """Steps of a synthesized interceptor call sequence"""
    BEFORE = "before"
    AROUND_ENTERING = "around (entering)"
    ORIGINAL = "original"
    AROUND_EXITING = "around (exiting)"
    AFTER = "after"


def normalize_class_name(name: str) -> str:
    """Strip the leading namespace separator from a PHP type name"""
    return name.lstrip("\\")


def is_disabled_flag(value: str) -> bool:
    """di.xml treats only "true" and "1" as disabling a plugin"""
    return value in ("true", "1")


@dataclass
class PluginDeclaration:
    """One <plugin> entry declared under a <type name="..."> element"""
    plugin_name: str
    target_type: str
    plugin_type: str = ""
    sort_order: int = 0
    disabled: str = ""
    source_file: str = ""

    @property
    def is_disabled(self) -> bool:
        return is_disabled_flag(self.disabled)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pluginName": self.plugin_name,
            "pluginType": self.plugin_type,
            "targetType": self.target_type,
            "sortOrder": self.sort_order,
            "disabled": self.disabled,
            "sourceFile": self.source_file,
        }


@dataclass
class EffectivePlugin(PluginDeclaration):
    """A declaration that applies to the analysed method in one scope"""
    methods: Dict[str, str] = field(default_factory=dict)
    module: Optional[str] = None
    reflection_error: Optional[str] = None
    scope: Optional[str] = None

    def has_hook(self, kind: HookKind) -> bool:
        return kind.value in self.methods

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["methods"] = dict(self.methods)
        if self.reflection_error:
            result["reflectionError"] = self.reflection_error
        result["module"] = self.module
        result["scope"] = self.scope
        return result


@dataclass(frozen=True)
class ExecutionStep:
    """One call in the synthesized interception sequence"""
    step: StepKind
    plugin_name: Optional[str]
    class_name: str
    method: str
    sort_order: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "pluginName": self.plugin_name,
            "class": self.class_name,
            "method": self.method,
            "sortOrder": self.sort_order,
        }


@dataclass(frozen=True)
class ReflectedType:
    """Structural view of a PHP type as reported by a TypeInspector"""
    name: str
    kind: str = "class"
    ancestors: Tuple[str, ...] = ()
    interfaces: Tuple[str, ...] = ()
    public_methods: Tuple[str, ...] = ()
    method_names: FrozenSet[str] = frozenset()

    def has_method(self, name: str) -> bool:
        """Method lookup is case-insensitive, as in PHP"""
        return name.lower() in self.method_names
