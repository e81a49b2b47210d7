"""SQLite-backed symbol index over the PHP source tree"""

from .symbol_table import SymbolTable, Symbol, SymbolType

__all__ = ['SymbolTable', 'Symbol', 'SymbolType']
