"""
Type inspection over the static PHP symbol index.

The analyzer only needs a few structural facts about a PHP type: its parent
chain, the interfaces it implements and which methods it exposes. These are
answered from the SQLite symbol table, loading source files on demand
through the composer class locator.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Set

from ..exceptions import TypeNotFoundError
from ..parsers.php_symbols import PHPSymbolCollector
from ..symbol_table import SymbolTable, Symbol, SymbolType
from .autoload import ClassLocator
from .schema import ReflectedType, normalize_class_name

logger = logging.getLogger(__name__)


class TypeInspector(Protocol):
    """Anything that can describe a PHP type by name"""

    def reflect(self, type_name: str) -> ReflectedType:
        """Describe ``type_name`` or raise TypeNotFoundError"""
        ...


class SymbolIndexInspector:
    """TypeInspector backed by a SymbolTable.

    When a ``locator`` and ``collector`` are given, unknown types are looked
    up on disk and indexed before giving up.
    """

    def __init__(self, symbol_table: SymbolTable, locator: Optional[ClassLocator] = None, collector=None):
        self.symbol_table = symbol_table
        self.locator = locator
        self.collector = collector
        self._cache: Dict[str, ReflectedType] = {}
        self._checked_files: Set[str] = set()

    @classmethod
    def for_project(cls, project, symbol_cache: Optional[str] = None) -> "SymbolIndexInspector":
        """Inspector that lazily indexes the project's PHP sources.

        ``symbol_cache`` is a SQLite file reused between runs; entries are
        keyed by file content hash so stale files are re-parsed.
        """
        symbol_table = SymbolTable(symbol_cache or ":memory:")
        return cls(
            symbol_table,
            locator=ClassLocator.for_project(project.root, project.module_paths),
            collector=PHPSymbolCollector(symbol_table),
        )

    def close(self) -> None:
        self.symbol_table.close()

    def reflect(self, type_name: str) -> ReflectedType:
        name = normalize_class_name(type_name)
        if not name:
            raise TypeNotFoundError(type_name)

        cached = self._cache.get(name.lower())
        if cached is not None:
            return cached

        symbol = self._load(name)
        if symbol is None:
            raise TypeNotFoundError(name)

        ancestors = self._ancestors(symbol)
        interfaces = self._interfaces(symbol)
        methods = self._collect_methods(symbol, set())

        reflected = ReflectedType(
            name=symbol.name,
            kind=symbol.type.value,
            ancestors=tuple(ancestors),
            interfaces=tuple(interfaces),
            public_methods=tuple(m.name for m in methods if (m.visibility or 'public') == 'public'),
            method_names=frozenset(m.name.lower() for m in methods),
        )
        self._cache[name.lower()] = reflected
        return reflected

    def _load(self, name: str) -> Optional[Symbol]:
        """Find a type in the index, parsing its source file if needed.

        Index entries from an earlier run are trusted only after their
        source file has been checked against its stored content hash, once
        per inspector.
        """
        symbol = self.symbol_table.get_type(name)
        if self.collector is None:
            return symbol

        if symbol is not None and symbol.file_path not in self._checked_files:
            self._refresh(symbol.file_path)
            symbol = self.symbol_table.get_type(name)
        if symbol is not None or self.locator is None:
            return symbol

        path = self.locator.locate(name)
        if path is None:
            logger.debug(f"No source file found for {name}")
            return None

        if str(path) not in self._checked_files:
            self._refresh(str(path))
        return self.symbol_table.get_type(name)

    def _refresh(self, file_path: str) -> None:
        """Re-index ``file_path`` if it changed, or forget it if it is gone or unparsable"""
        self._checked_files.add(file_path)
        if not Path(file_path).is_file():
            logger.debug(f"{file_path} no longer exists, dropping its symbols")
            self.symbol_table.forget_file(file_path)
            self.symbol_table.commit()
            return

        try:
            self.collector.parse_file(file_path)
        except Exception as e:
            logger.warning(f"Cannot index {file_path}: {e}")
            self.symbol_table.forget_file(file_path)
            self.symbol_table.commit()

    def _ancestors(self, symbol: Symbol) -> List[str]:
        """Parent class chain, nearest first.

        A parent that cannot be found ends the chain after its own name,
        which covers PHP built-in classes such as \\Exception.
        """
        chain: List[str] = []
        seen = {symbol.name.lower()}
        current = symbol
        while current is not None and current.extends:
            parent_name = normalize_class_name(current.extends)
            if parent_name.lower() in seen:
                logger.warning(f"Inheritance cycle detected at {parent_name}")
                break
            seen.add(parent_name.lower())

            parent = self._load(parent_name)
            chain.append(parent.name if parent else parent_name)
            current = parent
        return chain

    def _interfaces(self, symbol: Symbol) -> List[str]:
        """Every interface implemented by the type, directly or inherited"""
        result: List[str] = []
        seen: Set[str] = set()

        def visit_interface(name: str) -> None:
            name = normalize_class_name(name)
            if name.lower() in seen:
                return
            seen.add(name.lower())
            interface = self._load(name)
            result.append(interface.name if interface else name)
            if interface is not None:
                for parent in interface.implements or []:
                    visit_interface(parent)

        visited_types: Set[str] = set()
        current: Optional[Symbol] = symbol
        while current is not None and current.name.lower() not in visited_types:
            visited_types.add(current.name.lower())
            for name in current.implements or []:
                visit_interface(name)
            current = self._load(normalize_class_name(current.extends)) if current.extends else None

        # An interface does not implement itself
        if symbol.type == SymbolType.INTERFACE:
            result = [name for name in result if name.lower() != symbol.name.lower()]
        return result

    def _collect_methods(self, symbol: Symbol, visiting: Set[str]) -> List[Symbol]:
        """Own, trait, inherited and interface methods; the first declaration of a name wins"""
        key = symbol.name.lower()
        if key in visiting:
            return []
        visiting.add(key)

        methods: Dict[str, Symbol] = {}

        def merge(candidates: List[Symbol]) -> None:
            for method in candidates:
                methods.setdefault(method.name.lower(), method)

        merge(self.symbol_table.get_methods(symbol.id))

        related = list(symbol.uses or [])
        if symbol.extends:
            related.append(symbol.extends)
        related.extend(symbol.implements or [])

        for name in related:
            other = self._load(normalize_class_name(name))
            if other is not None:
                merge(self._collect_methods(other, visiting))

        return list(methods.values())
