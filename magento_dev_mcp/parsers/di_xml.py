"""Parser for <plugin> declarations in Magento di.xml files"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, Iterable

from ..core.schema import PluginDeclaration

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def php_int(value: str) -> int:
    """Cast an attribute string the way PHP's (int) cast does ("10abc" -> 10, "x" -> 0)"""
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else 0


def parse_plugin_declarations(di_files: Iterable[str]) -> Dict[str, PluginDeclaration]:
    """Parse plugin declarations from di.xml files, later files winning.

    Returns a mapping keyed by ``targetType::pluginName``. A declaration
    without a ``type`` attribute that refers to an existing key only refines
    it: ``disabled`` and ``sortOrder`` are updated when present and the
    previously declared plugin type is kept.
    """
    plugins: Dict[str, PluginDeclaration] = {}

    for di_file in di_files:
        try:
            root = ET.parse(di_file).getroot()
        except (ET.ParseError, OSError) as e:
            logger.debug(f"Skipping unreadable di.xml {di_file}: {e}")
            continue

        for type_node in root.iter('type'):
            target_type = type_node.get('name', '')
            if not target_type:
                continue

            for plugin_node in type_node.findall('plugin'):
                plugin_name = plugin_node.get('name', '')
                if not plugin_name:
                    continue

                plugin_type = plugin_node.get('type', '')
                raw_sort_order = plugin_node.get('sortOrder')
                disabled = plugin_node.get('disabled', '')
                key = f"{target_type}::{plugin_name}"
                existing = plugins.get(key)

                if existing is not None and not plugin_type:
                    if disabled != '':
                        existing.disabled = disabled
                    if raw_sort_order is not None:
                        existing.sort_order = php_int(raw_sort_order)
                    existing.source_file = di_file
                else:
                    plugins[key] = PluginDeclaration(
                        plugin_name=plugin_name,
                        target_type=target_type,
                        plugin_type=plugin_type or (existing.plugin_type if existing else ''),
                        sort_order=php_int(raw_sort_order) if raw_sort_order is not None else 0,
                        disabled=disabled,
                        source_file=di_file,
                    )

    return plugins
