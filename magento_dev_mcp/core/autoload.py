"""
Class file locator built from composer autoload metadata.

Maps a fully qualified PHP class name to the file that declares it, the way
composer's PSR-4/PSR-0 autoloader would, without executing any PHP.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Magento's root composer.json maps "" to these through PSR-0
FALLBACK_DIRS = ("app/code", "generated/code", "lib/internal")


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    return [v for v in value or [] if isinstance(v, str)]


class ClassLocator:
    """Resolve class names to source files via PSR-4 and PSR-0 prefixes"""

    def __init__(self, psr4: Iterable[Tuple[str, Path]] = (), psr0: Iterable[Tuple[str, Path]] = ()):
        # Longest prefix first, like composer's ClassLoader
        self.psr4 = sorted(psr4, key=lambda entry: len(entry[0]), reverse=True)
        self.psr0 = sorted(psr0, key=lambda entry: len(entry[0]), reverse=True)

    @classmethod
    def for_project(cls, root: str, module_paths: Mapping[str, str]) -> "ClassLocator":
        """Build a locator from composer.json, installed.json and module registrations"""
        root_path = Path(root)
        psr4: List[Tuple[str, Path]] = []
        psr0: List[Tuple[str, Path]] = []

        root_composer = root_path / "composer.json"
        if root_composer.is_file():
            cls._add_autoload(cls._read_json(root_composer).get("autoload", {}), root_path, psr4, psr0)

        installed = root_path / "vendor" / "composer" / "installed.json"
        if installed.is_file():
            data = cls._read_json(installed)
            packages = data.get("packages", []) if isinstance(data, dict) else data
            for package in packages:
                if not isinstance(package, dict):
                    continue
                if package.get("install-path"):
                    base = (installed.parent / package["install-path"]).resolve()
                elif package.get("name"):
                    base = root_path / "vendor" / package["name"]
                else:
                    continue
                cls._add_autoload(package.get("autoload", {}), base, psr4, psr0)

        for module_name, module_path in module_paths.items():
            namespace = module_name.replace("_", "\\", 1)
            psr4.append((namespace + "\\", Path(module_path)))

        for fallback in FALLBACK_DIRS:
            psr0.append(("", root_path / fallback))

        logger.debug(f"Class locator: {len(psr4)} PSR-4 and {len(psr0)} PSR-0 prefixes")
        return cls(psr4, psr0)

    @staticmethod
    def _read_json(path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot read {path}: {e}")
            return {}

    @staticmethod
    def _add_autoload(autoload: Dict[str, Any], base: Path,
                      psr4: List[Tuple[str, Path]], psr0: List[Tuple[str, Path]]) -> None:
        if not isinstance(autoload, dict):
            return
        for prefix, dirs in (autoload.get("psr-4") or {}).items():
            for directory in _as_list(dirs):
                psr4.append((prefix, base / directory))
        for prefix, dirs in (autoload.get("psr-0") or {}).items():
            for directory in _as_list(dirs):
                psr0.append((prefix, base / directory))

    def candidates(self, class_name: str) -> List[Path]:
        """Every file path the autoloader would try, in order"""
        name = class_name.lstrip("\\")
        paths = []

        for prefix, directory in self.psr4:
            if prefix and name.startswith(prefix):
                relative = name[len(prefix):].replace("\\", "/")
                paths.append(directory / f"{relative}.php")

        namespace, _, short_name = name.rpartition("\\")
        psr0_relative = (namespace.replace("\\", "/") + "/" if namespace else "") + short_name.replace("_", "/")
        for prefix, directory in self.psr0:
            if name.startswith(prefix):
                paths.append(directory / f"{psr0_relative}.php")

        return paths

    def locate(self, class_name: str) -> Optional[Path]:
        """First existing source file for ``class_name``"""
        for path in self.candidates(class_name):
            if path.is_file():
                return path
        return None
