"""
Contract tests — Module manifests.

Verify that every module under backend/modules/ declares a valid manifest with
all required fields, that MODULE_ID matches the directory name, that declared
tables exist on the ORM metadata, and that every REQUIRES entry is provided by
the app factory.

Run: pytest tests/test_contracts/test_module_manifests.py -v
"""

import importlib
import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

EXPECTED_MODULES = [
    "background_jobs",
    "library",
]

REQUIRED_FIELDS = [
    "MODULE_ID",
    "MODULE_VERSION",
    "MODULE_DESCRIPTION",
    "ROUTES",
    "TABLES",
    "PUBLISHES",
    "SUBSCRIBES",
    "IMPLEMENTS",
    "REQUIRES",
    "DAEMONS",
]

LIST_FIELDS = ["ROUTES", "TABLES", "PUBLISHES", "SUBSCRIBES", "IMPLEMENTS", "REQUIRES", "DAEMONS"]


def _load_module(module_name: str):
    return importlib.import_module(f"modules.{module_name}")


def _module_dirs():
    modules_dir = BACKEND_DIR / "modules"
    return {
        d.name for d in modules_dir.iterdir()
        if d.is_dir() and not d.name.startswith("_") and (d / "__init__.py").exists()
    }


class TestModuleDirectories:

    def test_all_expected_modules_exist(self):
        missing = set(EXPECTED_MODULES) - _module_dirs()
        assert not missing, f"Expected module directories not found: {sorted(missing)}"

    def test_no_unexpected_modules(self):
        unexpected = _module_dirs() - set(EXPECTED_MODULES)
        assert not unexpected, (
            f"Unexpected module directories found (add to EXPECTED_MODULES or remove): {sorted(unexpected)}"
        )


class TestManifestFields:

    @pytest.mark.parametrize("module_name", EXPECTED_MODULES)
    def test_required_fields_present(self, module_name):
        mod = _load_module(module_name)
        missing = [f for f in REQUIRED_FIELDS if not hasattr(mod, f)]
        assert not missing, f"modules.{module_name} is missing manifest fields: {missing}"

    @pytest.mark.parametrize("module_name", EXPECTED_MODULES)
    def test_module_id_matches_directory_name(self, module_name):
        assert _load_module(module_name).MODULE_ID == module_name

    @pytest.mark.parametrize("module_name", EXPECTED_MODULES)
    def test_module_version_is_semver(self, module_name):
        version = _load_module(module_name).MODULE_VERSION
        assert isinstance(version, str)
        assert len(version.split(".")) == 3, f"{version!r} is not X.Y.Z"

    @pytest.mark.parametrize("module_name", EXPECTED_MODULES)
    def test_list_fields_hold_strings(self, module_name):
        mod = _load_module(module_name)
        for field in LIST_FIELDS:
            value = getattr(mod, field)
            assert isinstance(value, list), f"modules.{module_name}.{field} must be a list"
            assert all(isinstance(item, str) for item in value), (
                f"modules.{module_name}.{field} must contain only strings"
            )

    @pytest.mark.parametrize("module_name", EXPECTED_MODULES)
    def test_register_function_exists(self, module_name):
        assert callable(getattr(_load_module(module_name), "register", None))


class TestTableOwnership:

    def test_no_duplicate_table_ownership(self):
        owners = {}
        for module_name in EXPECTED_MODULES:
            for table in _load_module(module_name).TABLES:
                assert table not in owners, f"{table} owned by {owners[table]} and {module_name}"
                owners[table] = module_name

    def test_declared_tables_exist_on_metadata(self):
        from core.base import Base
        import modules.library.models  # noqa: F401

        for module_name in EXPECTED_MODULES:
            for table in _load_module(module_name).TABLES:
                assert table in Base.metadata.tables, f"{module_name} declares unknown table {table!r}"


class TestDependencies:

    def test_requires_satisfied_by_app_factory(self):
        from core.app import create_app

        app = create_app()
        registry = app.state.registry
        assert registry.missing_dependencies() == []
        assert registry.validate_dependencies() is True

    def test_job_services_are_shared(self):
        from core.app import create_app

        app = create_app()
        registry = app.state.registry
        assert registry.require("job_tracker") is app.state.job_tracker
        assert registry.require("bulk_runner").tracker is app.state.job_tracker
