"""Tests for module discovery and di.xml file collection"""

import json

import pytest

from magento_dev_mcp.core.project import MagentoProject, read_module_statuses
from magento_dev_mcp.exceptions import ProjectBootstrapError


def test_load_rejects_missing_root(tmp_path):
    with pytest.raises(ProjectBootstrapError, match="not a valid directory"):
        MagentoProject.load(tmp_path / "nope")


def test_load_requires_config_php(tmp_path):
    with pytest.raises(ProjectBootstrapError, match="app/etc/config.php"):
        MagentoProject.load(tmp_path)


def test_read_module_statuses_keeps_file_order(tmp_path):
    config = tmp_path / "config.php"
    config.write_text(
        "<?php\nreturn array(\n  'modules' => array(\n"
        "    'Magento_Store' => 1,\n    'Acme_Foo' => 0,\n    \"Acme_Bar\" => 1,\n  ),\n"
        "  'scopes' => ['Other_Thing' => 1],\n);\n",
        encoding="utf-8",
    )

    assert read_module_statuses(config) == {"Magento_Store": 1, "Acme_Foo": 0, "Acme_Bar": 1}


def test_enabled_modules_follow_config_order(magento):
    magento.add_module("Acme_Zeta")
    magento.add_module("Acme_Alpha")
    magento.add_module("Acme_Off", enabled=False)

    project = MagentoProject.load(magento.root)

    assert list(project.module_paths) == ["Acme_Zeta", "Acme_Alpha"]
    assert project.module_paths["Acme_Alpha"] == str(magento.module_dirs["Acme_Alpha"].resolve())


def test_modules_missing_from_config_or_registry_are_excluded(magento):
    magento.add_module("Acme_Listed")
    magento.modules["Ghost_Module"] = 1
    magento.write_config()
    magento.write("app/code/Acme/Unlisted/registration.php",
                  "<?php\n\\Magento\\Framework\\Component\\ComponentRegistrar::register("
                  "\\Magento\\Framework\\Component\\ComponentRegistrar::MODULE, 'Acme_Unlisted', __DIR__);\n")

    project = MagentoProject.load(magento.root)

    assert list(project.module_paths) == ["Acme_Listed"]


def test_vendor_modules_from_installed_json(magento):
    magento.add_module("Vendor_Package", location="vendor/vendor/module-package-src/src")
    magento.write("vendor/composer/installed.json", json.dumps({
        "packages": [
            {
                "name": "vendor/module-package",
                "type": "magento2-module",
                "install-path": "../vendor/module-package-src/src",
            },
            {"name": "other/library", "type": "library", "install-path": "../other/library"},
        ]
    }))

    project = MagentoProject.load(magento.root)

    assert "Vendor_Package" in project.module_paths


def test_module_paths_are_read_only(magento):
    magento.add_module("Acme_Foo")
    project = MagentoProject.load(magento.root)

    with pytest.raises(TypeError):
        project.module_paths["Acme_Bar"] = "/tmp"


def test_collect_di_files_order(magento):
    magento.add_module("Acme_First")
    magento.add_module("Acme_Second")
    first_global = magento.module_di("Acme_First", "")
    first_frontend = magento.module_di("Acme_First", "", scope="frontend")
    second_global = magento.module_di("Acme_Second", "")
    magento.module_di("Acme_Second", "", scope="adminhtml")
    app_di = magento.app_di("")

    project = MagentoProject.load(magento.root)
    resolved = lambda *paths: [str(p.resolve()) for p in paths]

    assert project.collect_di_files("global") == resolved(first_global, second_global, app_di)
    assert project.collect_di_files("frontend") == resolved(first_global, first_frontend, second_global, app_di)
    assert project.collect_area_di_files("frontend") == resolved(first_frontend)
    assert project.collect_area_di_files("global") == []
    assert project.collect_area_di_files("crontab") == []


def test_determine_module(magento):
    magento.add_module("Acme_Foo")
    magento.add_module("Acme_FooBar")
    project = MagentoProject.load(magento.root)
    foo = project.module_paths["Acme_Foo"]
    foobar = project.module_paths["Acme_FooBar"]

    assert project.determine_module(f"{foo}/etc/di.xml") == "Acme_Foo"
    assert project.determine_module(f"{foobar}/etc/di.xml") == "Acme_FooBar", "prefix match needs a separator"
    assert project.determine_module(f"{project.root}/app/etc/di.xml") == "app/etc"
    assert project.determine_module("/elsewhere/di.xml") is None
