"""
Magento project layout: enabled modules and the di.xml files they contribute.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from ..exceptions import ProjectBootstrapError
from .schema import GLOBAL_SCOPE, ROOT_OVERRIDE_MODULE


logger = logging.getLogger(__name__)

CONFIG_PHP = Path("app") / "etc" / "config.php"
ROOT_DI_XML = Path("app") / "etc" / "di.xml"

_MODULE_STATUS = re.compile(r"""['"]([A-Za-z0-9_]+)['"]\s*=>\s*(\d+)""")
_MODULES_KEY = re.compile(r"""['"]modules['"]\s*=>\s*(\[|array\s*\()""")
_REGISTRATION = re.compile(
    r"""ComponentRegistrar::register\(\s*"""
    r"""(?:\\?Magento\\Framework\\Component\\)?ComponentRegistrar::MODULE\s*,\s*"""
    r"""['"]([A-Za-z0-9_]+)['"]\s*,\s*__DIR__\s*,?\s*\)"""
)

REGISTRATION_GLOBS = (
    "app/code/*/*/registration.php",
    "vendor/*/*/registration.php",
)


def _matching_bracket_end(text: str, start: int) -> int:
    """Index just past the bracket group opening at ``start`` ([ or array()"""
    depth = 0
    quote = None
    i = start
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def read_module_statuses(config_php: Path) -> Dict[str, int]:
    """Read the 'modules' => [...] map of app/etc/config.php, in file order"""
    text = config_php.read_text(encoding="utf-8", errors="replace")
    match = _MODULES_KEY.search(text)
    if not match:
        return {}
    opening = match.end() - 1
    block = text[opening:_matching_bracket_end(text, opening)]
    return {name: int(status) for name, status in _MODULE_STATUS.findall(block)}


def _composer_module_dirs(root: Path) -> Iterator[Path]:
    """Install directories of magento2-module packages from vendor/composer/installed.json"""
    installed = root / "vendor" / "composer" / "installed.json"
    if not installed.is_file():
        return
    try:
        data = json.loads(installed.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Cannot read {installed}: {e}")
        return

    packages = data.get("packages", []) if isinstance(data, dict) else data
    for package in packages:
        if package.get("type") != "magento2-module":
            continue
        install_path = package.get("install-path")
        if install_path:
            yield (installed.parent / install_path).resolve()
        elif package.get("name"):
            yield root / "vendor" / package["name"]


def discover_registered_modules(root: Path) -> Dict[str, str]:
    """Map module names to their directories by reading registration.php files"""
    candidates: List[Path] = []
    for pattern in REGISTRATION_GLOBS:
        candidates.extend(sorted(root.glob(pattern)))
    candidates.extend(path / "registration.php" for path in _composer_module_dirs(root))

    registry: Dict[str, str] = {}
    seen = set()
    for registration in candidates:
        if registration in seen or not registration.is_file():
            continue
        seen.add(registration)
        try:
            text = registration.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read {registration}: {e}")
            continue
        for module_name in _REGISTRATION.findall(text):
            registry.setdefault(module_name, str(registration.parent))
    return registry


@dataclass(frozen=True)
class MagentoProject:
    """Read-only description of a Magento installation.

    ``module_paths`` only holds enabled modules, ordered as app/etc/config.php
    lists them. The order decides merge precedence between di.xml files.
    """

    root: str
    module_paths: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, root) -> "MagentoProject":
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise ProjectBootstrapError(f"Error: {root} is not a valid directory.")

        config_php = root_path / CONFIG_PHP
        if not config_php.is_file():
            raise ProjectBootstrapError(f"Error: Cannot find app/etc/config.php in {root_path}")

        try:
            statuses = read_module_statuses(config_php)
        except OSError as e:
            raise ProjectBootstrapError(f"Error: Cannot read {config_php}: {e}") from e

        registry = discover_registered_modules(root_path)
        enabled = {
            name: registry[name]
            for name, status in statuses.items()
            if status == 1 and name in registry
        }
        logger.info(
            f"Found {len(enabled)} enabled modules ({len(registry)} registered) in {root_path}"
        )
        return cls(root=str(root_path), module_paths=MappingProxyType(enabled))

    def collect_di_files(self, scope: str) -> List[str]:
        """All di.xml files visible in ``scope``, in merge order (root override last)"""
        files = []
        for module_path in self.module_paths.values():
            global_di = Path(module_path) / "etc" / "di.xml"
            if global_di.is_file():
                files.append(str(global_di))

            if scope != GLOBAL_SCOPE:
                area_di = Path(module_path) / "etc" / scope / "di.xml"
                if area_di.is_file():
                    files.append(str(area_di))

        app_di = Path(self.root) / ROOT_DI_XML
        if app_di.is_file():
            files.append(str(app_di))
        return files

    def collect_area_di_files(self, scope: str) -> List[str]:
        """Only the modules' etc/<scope>/di.xml files"""
        if scope == GLOBAL_SCOPE:
            return []
        files = []
        for module_path in self.module_paths.values():
            area_di = Path(module_path) / "etc" / scope / "di.xml"
            if area_di.is_file():
                files.append(str(area_di))
        return files

    def determine_module(self, di_file: str) -> Optional[str]:
        """Which module a di.xml file belongs to"""
        for module_name, module_path in self.module_paths.items():
            if di_file.startswith(module_path + "/"):
                return module_name

        if di_file.startswith(str(Path(self.root) / "app" / "etc") + "/"):
            return ROOT_OVERRIDE_MODULE

        return None
