"""Shared fixtures: synthetic Magento installations built under tmp_path"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from magento_dev_mcp.core.schema import ReflectedType
from magento_dev_mcp.exceptions import TypeNotFoundError

REGISTRATION_PHP = """<?php
use Magento\\Framework\\Component\\ComponentRegistrar;

ComponentRegistrar::register(ComponentRegistrar::MODULE, '{name}', __DIR__);
"""


def di_xml(body: str) -> str:
    return (
        '<?xml version="1.0"?>\n'
        '<config xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xsi:noNamespaceSchemaLocation="urn:magento:framework:ObjectManager/etc/config.xsd">\n'
        f"{body}\n"
        "</config>\n"
    )


class MagentoTree:
    """Writes the files of a minimal Magento installation"""

    def __init__(self, root: Path):
        self.root = root
        self.modules: Dict[str, int] = {}
        self.module_dirs: Dict[str, Path] = {}

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def add_module(self, name: str, enabled: bool = True, location: Optional[str] = None) -> Path:
        vendor, module = name.split("_", 1)
        relative = location or f"app/code/{vendor}/{module}"
        self.write(f"{relative}/registration.php", REGISTRATION_PHP.format(name=name))
        self.modules[name] = 1 if enabled else 0
        self.module_dirs[name] = self.root / relative
        self.write_config()
        return self.root / relative

    def write_config(self) -> Path:
        entries = "\n".join(f"        '{name}' => {status}," for name, status in self.modules.items())
        return self.write(
            "app/etc/config.php",
            f"<?php\nreturn [\n    'modules' => [\n{entries}\n    ],\n    'system' => []\n];\n",
        )

    def module_di(self, name: str, body: str, scope: Optional[str] = None) -> Path:
        base = self.module_dirs[name].relative_to(self.root)
        target = f"{base}/etc/{scope}/di.xml" if scope else f"{base}/etc/di.xml"
        return self.write(target, di_xml(body))

    def app_di(self, body: str) -> Path:
        return self.write("app/etc/di.xml", di_xml(body))

    def php(self, name: str, relative: str, source: str) -> Path:
        base = self.module_dirs[name].relative_to(self.root)
        return self.write(f"{base}/{relative}", source)


class FakeInspector:
    """TypeInspector answering from a fixed set of ReflectedType values"""

    def __init__(self, types: List[ReflectedType] = ()):
        self.types = {t.name: t for t in types}
        self.calls: List[str] = []

    def reflect(self, type_name: str) -> ReflectedType:
        name = type_name.lstrip("\\")
        self.calls.append(name)
        if name not in self.types:
            raise TypeNotFoundError(name)
        return self.types[name]


def plugin_class(name: str, *methods: str) -> ReflectedType:
    return ReflectedType(
        name=name,
        public_methods=tuple(methods),
        method_names=frozenset(m.lower() for m in methods),
    )


@pytest.fixture
def magento(tmp_path) -> MagentoTree:
    tree = MagentoTree(tmp_path / "magento")
    tree.write_config()
    return tree
