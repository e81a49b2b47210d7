"""PHP type collector: records classes, interfaces, traits, enums and their methods"""

import hashlib
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from tree_sitter import Language, Parser, Node
import tree_sitter_php

from ..symbol_table import SymbolTable, Symbol, SymbolType

logger = logging.getLogger(__name__)

NAME_NODES = ('name', 'qualified_name')


class PHPSymbolCollector:
    """Collects type declarations from PHP files into a SymbolTable"""

    def __init__(self, symbol_table: SymbolTable):
        self.symbol_table = symbol_table
        PHP_LANGUAGE = Language(tree_sitter_php.language_php())
        self.parser = Parser(PHP_LANGUAGE)

        # Track current context during traversal
        self.current_file = None
        self.current_namespace = None
        self.imports: Dict[str, str] = {}
        self._source = b""

    def parse_file(self, file_path: str) -> bool:
        """Parse a PHP file and collect its type symbols.

        Returns True when the file was (re)parsed, False when the stored
        content hash shows it is already indexed.
        """
        with open(file_path, 'rb') as f:
            content = f.read()
        file_hash = hashlib.md5(content).hexdigest()

        if not self.symbol_table.needs_parsing(file_path, file_hash):
            logger.debug(f"Skipping {file_path} - already parsed")
            return False

        logger.debug(f"Collecting symbols from {file_path}")

        self.symbol_table.clear_file_symbols(file_path)

        # Reset context
        self.current_file = file_path
        self.current_namespace = None
        self.imports = {}
        self._source = content

        tree = self.parser.parse(content)

        try:
            self._traverse(tree.root_node)
            self.symbol_table.update_file_hash(file_path, file_hash)
            self.symbol_table.commit()
        except Exception as e:
            logger.error(f"Error parsing {file_path}: {e}")
            self.symbol_table.rollback()
            raise
        return True

    def parse_files(self, paths: Iterable[Path]) -> Tuple[int, List[str]]:
        """Parse several files, skipping unreadable ones.

        Returns the number of files (re)parsed and one message per skipped
        file.
        """
        parsed = 0
        errors: List[str] = []
        for path in paths:
            try:
                if self.parse_file(str(path)):
                    parsed += 1
            except OSError as e:
                logger.warning(f"Cannot read {path}: {e}")
                errors.append(f"{path}: {e}")
        return parsed, errors

    def _traverse(self, node: Node) -> None:
        """Walk top-level statements, descending into braced namespaces"""
        if node.type == 'namespace_definition':
            self._handle_namespace(node)

        elif node.type == 'namespace_use_declaration':
            self._handle_use_statement(node)
            return

        elif node.type == 'class_declaration':
            self._handle_type(node, SymbolType.CLASS)
            return

        elif node.type == 'interface_declaration':
            self._handle_type(node, SymbolType.INTERFACE)
            return

        elif node.type == 'trait_declaration':
            self._handle_type(node, SymbolType.TRAIT)
            return

        elif node.type == 'enum_declaration':
            self._handle_type(node, SymbolType.ENUM)
            return

        elif node.type in ('function_definition', 'method_declaration'):
            return

        for child in node.children:
            self._traverse(child)

    def _handle_namespace(self, node: Node) -> None:
        """Handle namespace declaration"""
        name_node = node.child_by_field_name('name')
        self.current_namespace = self._get_node_text(name_node) if name_node else None
        self.imports = {}

    def _handle_use_statement(self, node: Node) -> None:
        """Handle `use` imports, including grouped `use A\\{B, C as D}` forms"""
        # function/const imports never name a class
        if any(child.type in ('function', 'const') for child in node.children):
            return

        prefix = ""
        for child in node.children:
            if child.type == 'namespace_name':
                prefix = self._get_node_text(child).lstrip('\\')

        for clause in self._find_descendants(node, ('namespace_use_clause', 'namespace_use_group_clause')):
            names = [c for c in clause.children if c.type in NAME_NODES + ('namespace_name',)]
            if not names:
                continue
            full_name = self._get_node_text(names[0]).lstrip('\\')
            if prefix:
                full_name = f"{prefix}\\{full_name}"

            alias = None
            alias_node = clause.child_by_field_name('alias')
            if alias_node is not None:
                alias = self._get_node_text(alias_node)
            else:
                for c in clause.children:
                    if c.type == 'namespace_aliasing_clause':
                        alias = self._get_node_text(c.children[-1])
                if alias is None and len(names) > 1:
                    alias = self._get_node_text(names[-1])
            if not alias:
                alias = full_name.split('\\')[-1]

            self.imports[alias.lower()] = full_name

    def _handle_type(self, node: Node, symbol_type: SymbolType) -> Optional[str]:
        """Record a class-like declaration and its methods"""
        name_node = node.child_by_field_name('name')
        if not name_node:
            return None

        full_name = self._get_full_name(self._get_node_text(name_node))

        is_abstract = False
        is_final = False
        extends = None
        implements: List[str] = []
        for child in node.children:
            if child.type == 'abstract_modifier':
                is_abstract = True
            elif child.type == 'final_modifier':
                is_final = True
            elif child.type == 'base_clause':
                parents = [self.resolve_name(self._get_node_text(c))
                           for c in child.children if c.type in NAME_NODES]
                if symbol_type == SymbolType.INTERFACE:
                    # Interfaces may extend several interfaces; store them as implements
                    implements.extend(parents)
                elif parents:
                    extends = parents[0]
            elif child.type == 'class_interface_clause':
                implements.extend(self.resolve_name(self._get_node_text(c))
                                  for c in child.children if c.type in NAME_NODES)

        body = node.child_by_field_name('body')
        uses: List[str] = []
        if body is not None:
            for member in body.children:
                if member.type == 'use_declaration':
                    uses.extend(self.resolve_name(self._get_node_text(c))
                                for c in member.children if c.type in NAME_NODES)

        symbol = Symbol(
            id=self._generate_id(node, symbol_type),
            name=full_name,
            type=symbol_type,
            file_path=self.current_file,
            line_number=node.start_point[0] + 1,
            column_number=node.start_point[1],
            namespace=self.current_namespace,
            is_abstract=is_abstract,
            is_final=is_final,
            extends=extends,
            implements=implements or None,
            uses=uses or None,
        )
        self.symbol_table.add_symbol(symbol)

        if body is not None:
            for member in body.children:
                if member.type == 'method_declaration':
                    self._handle_method(member, symbol.id)
        return symbol.id

    def _handle_method(self, node: Node, parent_id: str) -> None:
        """Handle method declaration"""
        name_node = node.child_by_field_name('name')
        if not name_node:
            return

        visibility = 'public'  # default
        is_static = False
        is_abstract = False
        is_final = False

        for child in node.children:
            if child.type == 'visibility_modifier':
                visibility = self._get_node_text(child).lower()
            elif child.type == 'static_modifier':
                is_static = True
            elif child.type == 'abstract_modifier':
                is_abstract = True
            elif child.type == 'final_modifier':
                is_final = True

        symbol = Symbol(
            id=self._generate_id(node, SymbolType.METHOD),
            name=self._get_node_text(name_node),
            type=SymbolType.METHOD,
            file_path=self.current_file,
            line_number=node.start_point[0] + 1,
            column_number=node.start_point[1],
            namespace=self.current_namespace,
            parent_id=parent_id,
            visibility=visibility,
            is_static=is_static,
            is_abstract=is_abstract,
            is_final=is_final,
        )
        self.symbol_table.add_symbol(symbol)

    def resolve_name(self, name: str) -> str:
        """Resolve a class reference against the current namespace and imports"""
        if name.startswith('\\'):
            return name[1:]
        if name.lower().startswith('namespace\\'):
            return self._get_full_name(name[len('namespace\\'):])

        first, _, rest = name.partition('\\')
        imported = self.imports.get(first.lower())
        if imported:
            return f"{imported}\\{rest}" if rest else imported
        return self._get_full_name(name)

    def _get_full_name(self, name: str) -> str:
        """Get the fully qualified name including namespace"""
        if self.current_namespace and not name.startswith('\\'):
            return f"{self.current_namespace}\\{name}"
        return name.lstrip('\\')

    def _get_node_text(self, node: Node) -> str:
        """Get the text content of a node"""
        if not node:
            return ""
        return self._source[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    def _find_descendants(self, node: Node, types: tuple) -> List[Node]:
        found = []
        for child in node.children:
            if child.type in types:
                found.append(child)
            else:
                found.extend(self._find_descendants(child, types))
        return found

    def _generate_id(self, node: Node, symbol_type: SymbolType) -> str:
        """Generate a unique ID for a symbol with a type prefix"""
        id_string = f"{self.current_file}:{node.start_point[0]}:{node.start_point[1]}:{node.type}"
        return f"php_{symbol_type.value}_" + hashlib.md5(id_string.encode()).hexdigest()
