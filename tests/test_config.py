"""Tests for catalog loading and runtime settings."""

import json
import shutil

import pytest
from pydantic import ValidationError

from callcenter.config.catalog import (
    Catalog,
    ConfigurationError,
    PassiveEffect,
    default_data_dir,
    load_catalog,
)
from callcenter.config.settings import (
    PersistenceSettings,
    SaveBackendType,
    Settings,
)
from callcenter.persistence.storage import FileStore, InMemoryStore, create_store


@pytest.fixture
def data_dir(tmp_path):
    """Writable copy of the packaged catalog documents."""
    target = tmp_path / "data"
    shutil.copytree(default_data_dir(), target)
    return target


def _rewrite(path, mutate):
    document = json.loads(path.read_text())
    mutate(document)
    path.write_text(json.dumps(document))


class TestPackagedCatalog:
    def test_loads(self):
        catalog = load_catalog()
        assert isinstance(catalog, Catalog)
        assert len(catalog.dialers) == 5
        assert len(catalog.lead_sources) == 4
        assert len(catalog.upgrades) == 13
        assert len(catalog.events) == 4

    def test_lookups(self):
        catalog = load_catalog()
        assert catalog.get_dialer("manual").tier == 1
        assert catalog.get_lead_source("standard_leads").unlock_cost == 0
        assert catalog.get_upgrade("nope") is None

    def test_effects_parsed(self):
        catalog = load_catalog()
        marketing = catalog.get_upgrade("marketing_campaign")
        assert isinstance(marketing.effects[0], PassiveEffect)
        assert marketing.effects[0].type.value == "daily_leads"

    def test_time_factors_keyed_by_hour(self):
        factors = load_catalog().defaults.call.time_of_day_factors
        assert all(isinstance(hour, int) for hour in factors)

    def test_catalog_is_frozen(self):
        catalog = load_catalog()
        with pytest.raises(ValidationError):
            catalog.dialers[0].unlock_cost = 1


class TestBrokenCatalog:
    def test_missing_document(self, data_dir):
        (data_dir / "events.json").unlink()
        with pytest.raises(ConfigurationError, match="Missing"):
            load_catalog(data_dir)

    def test_malformed_json(self, data_dir):
        (data_dir / "dialers.json").write_text("{")
        with pytest.raises(ConfigurationError):
            load_catalog(data_dir)

    def test_missing_top_level_key(self, data_dir):
        (data_dir / "dialers.json").write_text('{"items": []}')
        with pytest.raises(ConfigurationError):
            load_catalog(data_dir)

    def test_duplicate_ids(self, data_dir):
        _rewrite(data_dir / "dialers.json", lambda d: d["dialers"].append(d["dialers"][0]))
        with pytest.raises(ConfigurationError, match="Duplicate"):
            load_catalog(data_dir)

    def test_dangling_prerequisite(self, data_dir):
        def mutate(document):
            document["lead_sources"][1]["prerequisites"] = ["nowhere"]

        _rewrite(data_dir / "lead_sources.json", mutate)
        with pytest.raises(ConfigurationError, match="nowhere"):
            load_catalog(data_dir)

    def test_unknown_effect_type(self, data_dir):
        def mutate(document):
            document["upgrades"][0]["effects"] = [{"type": "teleport", "value": 1}]

        _rewrite(data_dir / "upgrades.json", mutate)
        with pytest.raises(ConfigurationError):
            load_catalog(data_dir)

    def test_unknown_starting_dialer(self, data_dir):
        _rewrite(data_dir / "defaults.json", lambda d: d["game"].update(starting_dialer="rotary"))
        with pytest.raises(ConfigurationError):
            load_catalog(data_dir)

    def test_work_day_must_end_after_start(self, data_dir):
        def mutate(document):
            document["game"]["work_start_hour"] = 18
            document["game"]["work_end_hour"] = 9

        _rewrite(data_dir / "defaults.json", mutate)
        with pytest.raises(ConfigurationError):
            load_catalog(data_dir)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SIM_SEED", raising=False)
        monkeypatch.delenv("SAVE_BACKEND", raising=False)
        settings = Settings.from_env()
        assert settings.simulation.seed is None
        assert settings.simulation.max_fast_forward_minutes == 10080
        assert settings.persistence.backend == SaveBackendType.IN_MEMORY

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SIM_SEED", "42")
        monkeypatch.setenv("SAVE_BACKEND", "file")
        monkeypatch.setenv("SAVE_DIRECTORY", str(tmp_path))
        settings = Settings.from_env()
        assert settings.simulation.seed == 42
        assert settings.persistence.backend == SaveBackendType.FILE
        assert settings.persistence.directory == str(tmp_path)

    def test_create_store(self, tmp_path):
        assert isinstance(create_store(PersistenceSettings()), InMemoryStore)
        store = create_store(
            PersistenceSettings(backend=SaveBackendType.FILE, directory=str(tmp_path))
        )
        assert isinstance(store, FileStore)
