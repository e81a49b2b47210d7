"""Parsers for PHP sources and Magento di.xml declarations"""

from .php_symbols import PHPSymbolCollector
from .di_xml import parse_plugin_declarations, php_int

__all__ = ['PHPSymbolCollector', 'parse_plugin_declarations', 'php_int']
