"""Symbol Table implementation with SQLite backend"""

import sqlite3
import json
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any
from pathlib import Path
import hashlib
import logging

logger = logging.getLogger(__name__)


class SymbolType(Enum):
    """Types of PHP symbols kept in the index"""
    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"
    ENUM = "enum"
    METHOD = "method"


TYPE_KINDS = (
    SymbolType.CLASS.value,
    SymbolType.INTERFACE.value,
    SymbolType.TRAIT.value,
    SymbolType.ENUM.value,
)


@dataclass
class Symbol:
    """Represents a type or method declaration in the PHP source tree"""
    id: str
    name: str
    type: SymbolType
    file_path: str
    line_number: int
    column_number: int = 0
    namespace: Optional[str] = None
    parent_id: Optional[str] = None
    visibility: Optional[str] = None  # public, private, protected
    is_static: bool = False
    is_abstract: bool = False
    is_final: bool = False
    extends: Optional[str] = None
    implements: Optional[List[str]] = None
    uses: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = {}
        for key, value in asdict(self).items():
            if key == 'type':
                result[key] = value.value
            elif key in ['implements', 'uses']:
                result[key] = json.dumps(value) if value else None
            else:
                result[key] = value
        return result

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Symbol':
        """Create from database row"""
        data = dict(row)
        data['type'] = SymbolType(data['type'])

        for field in ['implements', 'uses']:
            if data.get(field):
                data[field] = json.loads(data[field])
        for flag in ['is_static', 'is_abstract', 'is_final']:
            data[flag] = bool(data[flag])

        return cls(**data)


class SymbolTable:
    """Symbol Table with SQLite backend for fast type lookups"""

    def __init__(self, db_path: str = ":memory:"):
        """Initialize the symbol table"""
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(db_path), timeout=30.0)
        self.conn.row_factory = sqlite3.Row
        if db_path != ":memory:":
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")

        self._create_tables()
        self._create_indexes()

    def _create_tables(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS symbols (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                type TEXT NOT NULL,
                file_path TEXT NOT NULL,
                line_number INTEGER NOT NULL,
                column_number INTEGER NOT NULL,
                namespace TEXT,
                parent_id TEXT,
                visibility TEXT,
                is_static BOOLEAN DEFAULT 0,
                is_abstract BOOLEAN DEFAULT 0,
                is_final BOOLEAN DEFAULT 0,
                extends TEXT,
                implements TEXT,
                uses TEXT
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS file_hashes (
                file_path TEXT PRIMARY KEY,
                hash TEXT NOT NULL,
                last_parsed TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.commit()

    def _create_indexes(self):
        """Create database indexes for performance"""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_symbols_name ON symbols(name)",
            "CREATE INDEX IF NOT EXISTS idx_symbols_lower_name ON symbols(lower(name))",
            "CREATE INDEX IF NOT EXISTS idx_symbols_type ON symbols(type)",
            "CREATE INDEX IF NOT EXISTS idx_symbols_file ON symbols(file_path)",
            "CREATE INDEX IF NOT EXISTS idx_symbols_parent ON symbols(parent_id)",
        ]

        for index in indexes:
            self.conn.execute(index)

        self.conn.commit()

    def add_symbol(self, symbol: Symbol) -> None:
        """Add a symbol to the table"""
        if not symbol.id:
            id_string = f"{symbol.file_path}:{symbol.name}:{symbol.line_number}:{symbol.column_number}"
            symbol.id = hashlib.md5(id_string.encode()).hexdigest()

        data = symbol.to_dict()
        columns = list(data.keys())
        placeholders = ['?' for _ in columns]

        query = f"""
            INSERT OR REPLACE INTO symbols ({', '.join(columns)})
            VALUES ({', '.join(placeholders)})
        """

        self.conn.execute(query, [data[col] for col in columns])

    def get_type(self, name: str) -> Optional[Symbol]:
        """Look up a class, interface, trait or enum by fully qualified name.

        PHP type names are case-insensitive, so an exact match is preferred
        and a case-insensitive match is used as fallback.
        """
        clean_name = name.lstrip('\\')
        placeholders = ', '.join('?' for _ in TYPE_KINDS)

        cursor = self.conn.execute(
            f"SELECT * FROM symbols WHERE name = ? AND type IN ({placeholders}) LIMIT 1",
            (clean_name, *TYPE_KINDS)
        )
        row = cursor.fetchone()
        if row is None:
            cursor = self.conn.execute(
                f"SELECT * FROM symbols WHERE lower(name) = ? AND type IN ({placeholders}) LIMIT 1",
                (clean_name.lower(), *TYPE_KINDS)
            )
            row = cursor.fetchone()
        return Symbol.from_row(row) if row else None

    def get_methods(self, type_id: str) -> List[Symbol]:
        """Get the methods declared directly on a type, in source order"""
        cursor = self.conn.execute(
            "SELECT * FROM symbols WHERE parent_id = ? AND type = ? ORDER BY line_number, column_number",
            (type_id, SymbolType.METHOD.value)
        )
        return [Symbol.from_row(row) for row in cursor]

    def get_symbols_in_file(self, file_path: str) -> List[Symbol]:
        """Get all symbols in a file"""
        cursor = self.conn.execute(
            "SELECT * FROM symbols WHERE file_path = ? ORDER BY line_number",
            (file_path,)
        )
        return [Symbol.from_row(row) for row in cursor]

    def update_file_hash(self, file_path: str, file_hash: str) -> None:
        """Update the hash of a parsed file"""
        self.conn.execute("""
            INSERT OR REPLACE INTO file_hashes (file_path, hash, last_parsed)
            VALUES (?, ?, CURRENT_TIMESTAMP)
        """, (file_path, file_hash))

    def get_file_hash(self, file_path: str) -> Optional[str]:
        """Get the stored hash of a file"""
        cursor = self.conn.execute(
            "SELECT hash FROM file_hashes WHERE file_path = ?",
            (file_path,)
        )
        row = cursor.fetchone()
        return row['hash'] if row else None

    def needs_parsing(self, file_path: str, current_hash: str) -> bool:
        """Check if a file needs parsing based on hash"""
        stored_hash = self.get_file_hash(file_path)
        return stored_hash != current_hash

    def clear_file_symbols(self, file_path: str) -> None:
        """Clear all symbols from a file (before re-parsing)"""
        self.conn.execute(
            "DELETE FROM symbols WHERE file_path = ?",
            (file_path,)
        )

    def forget_file(self, file_path: str) -> None:
        """Drop a file's symbols and stored hash so it is parsed again if it comes back"""
        self.clear_file_symbols(file_path)
        self.conn.execute(
            "DELETE FROM file_hashes WHERE file_path = ?",
            (file_path,)
        )

    def commit(self) -> None:
        """Commit current transaction"""
        self.conn.commit()

    def rollback(self) -> None:
        """Rollback current transaction"""
        self.conn.rollback()

    def close(self) -> None:
        """Close the database connection"""
        self.conn.close()

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the symbol table"""
        stats = {}

        cursor = self.conn.execute("SELECT COUNT(*) as count FROM symbols")
        stats['total_symbols'] = cursor.fetchone()['count']

        cursor = self.conn.execute("""
            SELECT type, COUNT(*) as count
            FROM symbols
            GROUP BY type
        """)
        for row in cursor:
            stats[f"type_{row['type']}"] = row['count']

        cursor = self.conn.execute("SELECT COUNT(*) as count FROM file_hashes")
        stats['files_parsed'] = cursor.fetchone()['count']

        return stats
