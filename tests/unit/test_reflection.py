"""Tests for SymbolIndexInspector and ClassLocator"""

import json

import pytest

from magento_dev_mcp.core.autoload import ClassLocator
from magento_dev_mcp.core.reflection import SymbolIndexInspector
from magento_dev_mcp.exceptions import TypeNotFoundError
from magento_dev_mcp.parsers.php_symbols import PHPSymbolCollector
from magento_dev_mcp.symbol_table import SymbolTable, Symbol, SymbolType


class IndexBuilder:
    """Adds types and methods to an in-memory symbol table"""

    def __init__(self):
        self.symbol_table = SymbolTable(":memory:")
        self.line = 0

    def add_type(self, name, kind=SymbolType.CLASS, extends=None, implements=None, uses=None):
        self.line += 1
        self.symbol_table.add_symbol(Symbol(
            id=f"type:{name}", name=name, type=kind, file_path="/src.php", line_number=self.line,
            extends=extends, implements=implements, uses=uses,
        ))
        return self

    def add_method(self, owner, name, visibility="public"):
        self.line += 1
        self.symbol_table.add_symbol(Symbol(
            id=f"method:{owner}:{name}", name=name, type=SymbolType.METHOD, file_path="/src.php",
            line_number=self.line, parent_id=f"type:{owner}", visibility=visibility,
        ))
        return self

    def inspector(self):
        self.symbol_table.commit()
        return SymbolIndexInspector(self.symbol_table)


@pytest.fixture
def catalog():
    builder = IndexBuilder()
    builder.add_type("Api\\Entity", SymbolType.INTERFACE)
    builder.add_method("Api\\Entity", "getId")
    builder.add_type("Api\\Product", SymbolType.INTERFACE, implements=["Api\\Entity", "Countable"])
    builder.add_method("Api\\Product", "getSku")
    builder.add_type("Model\\Timestamps", SymbolType.TRAIT)
    builder.add_method("Model\\Timestamps", "touch")
    builder.add_type("Model\\AbstractModel", extends="Magento\\Framework\\DataObject",
                     implements=["Api\\Entity"])
    builder.add_method("Model\\AbstractModel", "save")
    builder.add_method("Model\\AbstractModel", "_beforeSave", "protected")
    builder.add_type("Model\\Product", extends="\\Model\\AbstractModel",
                     implements=["Api\\Product"], uses=["Model\\Timestamps"])
    builder.add_method("Model\\Product", "getSku")
    builder.add_method("Model\\Product", "SAVE")
    builder.add_method("Model\\Product", "secret", "private")
    return builder.inspector()


def test_ancestors_stop_at_unknown_parent(catalog):
    product = catalog.reflect("\\Model\\Product")

    assert product.name == "Model\\Product"
    assert product.kind == "class"
    assert product.ancestors == ("Model\\AbstractModel", "Magento\\Framework\\DataObject")


def test_interfaces_include_inherited_and_parents(catalog):
    product = catalog.reflect("Model\\Product")

    assert set(product.interfaces) == {"Api\\Product", "Api\\Entity", "Countable"}
    assert len(product.interfaces) == 3, "no duplicates"


def test_public_methods_first_declaration_wins(catalog):
    product = catalog.reflect("Model\\Product")

    assert product.public_methods == ("getSku", "SAVE", "touch", "getId")
    assert "_beforeSave" not in product.public_methods
    assert "secret" not in product.public_methods


def test_has_method_is_case_insensitive_and_sees_all_visibilities(catalog):
    product = catalog.reflect("Model\\Product")

    assert product.has_method("save")
    assert product.has_method("beforeSave") is False
    assert product.has_method("_BEFORESAVE")
    assert product.has_method("secret")
    assert product.has_method("Touch"), "trait methods count"


def test_interface_reflection(catalog):
    product_api = catalog.reflect("Api\\Product")

    assert product_api.kind == "interface"
    assert product_api.ancestors == ()
    assert product_api.interfaces == ("Api\\Entity", "Countable")
    assert product_api.public_methods == ("getSku", "getId")


def test_unknown_type_raises(catalog):
    with pytest.raises(TypeNotFoundError, match='Class "Nope\\\\Missing" does not exist'):
        catalog.reflect("\\Nope\\Missing")


def test_inheritance_cycle_terminates():
    inspector = (IndexBuilder()
                 .add_type("A", extends="B")
                 .add_type("B", extends="A")
                 .add_method("B", "run")
                 .inspector())

    reflected = inspector.reflect("A")

    assert reflected.ancestors == ("B",)
    assert reflected.public_methods == ("run",)


def test_class_locator_prefixes(tmp_path):
    (tmp_path / "composer.json").write_text(json.dumps({
        "autoload": {
            "psr-4": {"Acme\\": "src/", "Acme\\Special\\": ["special/"]},
            "psr-0": {"": "app/code/"},
        }
    }), encoding="utf-8")
    (tmp_path / "vendor" / "composer").mkdir(parents=True)
    (tmp_path / "vendor" / "composer" / "installed.json").write_text(json.dumps([
        {"name": "lib/tools", "autoload": {"psr-4": {"Lib\\Tools\\": "src"}}},
    ]), encoding="utf-8")

    locator = ClassLocator.for_project(str(tmp_path), {"Shop_Cart": str(tmp_path / "modules" / "cart")})

    def first(name):
        return locator.candidates(name)[0].relative_to(tmp_path).as_posix()

    assert first("Acme\\Special\\Thing") == "special/Thing.php", "longest prefix first"
    assert first("Acme\\Other\\Thing") == "src/Other/Thing.php"
    assert first("Lib\\Tools\\Hammer") == "vendor/lib/tools/src/Hammer.php"
    assert first("Shop\\Cart\\Model\\Quote") == "modules/cart/Model/Quote.php"
    assert first("Zend_Db_Select") == "app/code/Zend/Db/Select.php"
    assert locator.locate("Acme\\Other\\Thing") is None


def test_lazy_loading_through_locator(tmp_path):
    module_dir = tmp_path / "app" / "code" / "Acme" / "Shop"
    (module_dir / "Model").mkdir(parents=True)
    (module_dir / "Model" / "Cart.php").write_text(
        "<?php\nnamespace Acme\\Shop\\Model;\n\nclass Cart extends Base\n{\n    public function add() {}\n}\n",
        encoding="utf-8",
    )
    (module_dir / "Model" / "Base.php").write_text(
        "<?php\nnamespace Acme\\Shop\\Model;\n\nabstract class Base\n{\n    public function clear() {}\n}\n",
        encoding="utf-8",
    )
    symbol_table = SymbolTable(":memory:")
    inspector = SymbolIndexInspector(
        symbol_table,
        locator=ClassLocator.for_project(str(tmp_path), {"Acme_Shop": str(module_dir)}),
        collector=PHPSymbolCollector(symbol_table),
    )

    cart = inspector.reflect("Acme\\Shop\\Model\\Cart")

    assert cart.ancestors == ("Acme\\Shop\\Model\\Base",)
    assert cart.public_methods == ("add", "clear")
    assert symbol_table.get_stats()["files_parsed"] == 2


class FailingCollector(PHPSymbolCollector):
    def parse_file(self, file_path):
        raise RuntimeError("parser exploded")


def test_unparsable_source_is_reported_as_unknown_type(tmp_path):
    module_dir = tmp_path / "app" / "code" / "Acme" / "Shop"
    (module_dir / "Model").mkdir(parents=True)
    (module_dir / "Model" / "Broken.php").write_text("<?php\nclass {", encoding="utf-8")
    symbol_table = SymbolTable(":memory:")
    inspector = SymbolIndexInspector(
        symbol_table,
        locator=ClassLocator.for_project(str(tmp_path), {"Acme_Shop": str(module_dir)}),
        collector=FailingCollector(symbol_table),
    )

    with pytest.raises(TypeNotFoundError):
        inspector.reflect("Acme\\Shop\\Model\\Broken")
    assert symbol_table.get_stats()["files_parsed"] == 0


def test_indexed_type_is_dropped_when_its_file_disappears(tmp_path):
    module_dir = tmp_path / "app" / "code" / "Acme" / "Shop"
    (module_dir / "Model").mkdir(parents=True)
    source = module_dir / "Model" / "Cart.php"
    source.write_text("<?php\nnamespace Acme\\Shop\\Model;\n\nclass Cart\n{\n}\n", encoding="utf-8")
    symbol_table = SymbolTable(":memory:")
    PHPSymbolCollector(symbol_table).parse_file(str(source))
    source.unlink()

    inspector = SymbolIndexInspector(
        symbol_table,
        locator=ClassLocator.for_project(str(tmp_path), {"Acme_Shop": str(module_dir)}),
        collector=PHPSymbolCollector(symbol_table),
    )

    with pytest.raises(TypeNotFoundError):
        inspector.reflect("Acme\\Shop\\Model\\Cart")
    assert symbol_table.get_type("Acme\\Shop\\Model\\Cart") is None
    assert symbol_table.get_file_hash(str(source)) is None
