from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cartotaco.app import create_app
from cartotaco.datasource import MemoryDataSource
from cartotaco.sites.models import ProcessedSite


def _hours(start: str, end: str) -> dict:
    row = {}
    for day in ("sun", "mon", "tue", "wed", "thu", "fri", "sat"):
        row[f"{day}_start"] = start
        row[f"{day}_end"] = end
    return row


def build_tables() -> dict[str, list[dict]]:
    """Three complete sites plus site 4, which has no hours row."""
    return {
        "sites": [
            {"est_id": 1, "name": "Tacos Apson", "type": "Brick and Mortar",
             "latitude": 32.1962, "longitude": -110.9688, "created_at": "2026-02-10T18:00:00+00:00"},
            {"est_id": 2, "name": "El Taco Rustico", "type": "Truck",
             "latitude": 32.214, "longitude": -110.954, "created_at": "2025-06-11T17:30:00+00:00"},
            {"est_id": 3, "name": "Taqueria Pico de Gallo", "type": "Brick and Mortar",
             "latitude": 32.2081, "longitude": -110.9706, "created_at": "2024-01-20T16:00:00+00:00"},
            {"est_id": 4, "name": "Sonoran Stand", "type": "Stand",
             "latitude": 32.181, "longitude": -110.972, "created_at": "2026-02-01T15:00:00+00:00"},
        ],
        "descriptions": [
            {"est_id": i, "short_description": f"short {i}", "long_description": f"long {i}"}
            for i in (1, 2, 3, 4)
        ],
        "menu": [
            {"est_id": 1, "taco_perc": 0.45, "burro_perc": 0.2, "caramelo_perc": 0.15},
            {"est_id": 2, "taco_perc": 0.6, "burro_perc": 0.25},
            {"est_id": 3, "taco_perc": 0.5, "tostada_perc": 0.1},
            {"est_id": 4, "taco_perc": 0.7},
        ],
        "hours": [
            {"est_id": 1, **_hours("9:00", "21:00")},
            {"est_id": 2, **_hours("18:00", "2:00")},
            {"est_id": 3, **_hours("8:00 AM", "3:00 PM")},
        ],
        "salsa": [
            {"est_id": 1, "salsa_count": 8, "heat_overall": 6.5},
            {"est_id": 2, "salsa_count": 5, "heat_overall": 8},
            {"est_id": 3, "salsa_count": 4, "heat_overall": 3},
            {"est_id": 4, "salsa_count": 3, "heat_overall": 5},
        ],
        "protein": [
            {"est_id": 1, "asada_perc": 0.55, "pollo_perc": 0.25, "asada_yes": True, "pollo_yes": True, "pescado_yes": False},
            {"est_id": 2, "pastor_perc": 0.5, "asada_perc": 0.3, "asada_yes": True, "pastor_yes": True, "pescado_yes": False},
            {"est_id": 3, "pescado_perc": 0.4, "pollo_perc": 0.3, "asada_yes": False, "pollo_yes": True, "pescado_yes": True},
            {"est_id": 4, "birria_perc": 0.8, "birria_yes": True},
        ],
        "specialty_items": [
            {"est_id": 1, "name": "Caramelo", "description": "Cheese and asada in flour"},
        ],
        "specialty_proteins": [
            {"est_id": 2, "name": "Al Pastor", "description": "Off the trompo"},
        ],
        "specialty_salsas": [
            {"est_id": 1, "name": "Salsa de Arbol", "description": "Smoky"},
        ],
        "summary": [
            {"max_salsa": 8, "avg_salsa": 5, "max_heat": 8, "avg_heat": 5.625},
        ],
    }


@pytest.fixture
def tables() -> dict[str, list[dict]]:
    return build_tables()


@pytest.fixture
def source(tables) -> MemoryDataSource:
    return MemoryDataSource(tables)


@pytest.fixture
def make_entity():
    def _make(est_id=1, **overrides) -> dict:
        entity = {
            "est_id": est_id,
            "site": {"name": f"Site {est_id}", "type": "Truck", "latitude": 32.2, "longitude": -110.9,
                     "created_at": "2026-01-01T00:00:00+00:00"},
            "descriptions": {"short_description": "short", "long_description": "long"},
            "menu": {"taco_perc": 0.5, "burro_perc": 0.3},
            "hours": {"wed_start": "9:00", "wed_end": "17:00"},
            "salsa": {"salsa_count": 4, "heat_overall": 3},
            "protein": {"asada_perc": 0.6, "asada_yes": True},
        }
        for key, value in overrides.items():
            if value is None:
                entity.pop(key, None)
            else:
                entity[key] = value
        return entity

    return _make


@pytest.fixture
def make_site():
    def _make(est_id=1, **fields) -> ProcessedSite:
        fields.setdefault("name", f"Site {est_id}")
        return ProcessedSite(est_id=est_id, **fields)

    return _make


@pytest.fixture
def app(tables):
    return create_app(source=MemoryDataSource(tables))


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
