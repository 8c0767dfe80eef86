"""Shared test fixtures."""

import json
from pathlib import Path

import pytest
from rollview.config import Config, DataConfig, ServerConfig, SessionConfig
from rollview.core.rows import Row

from tests.helpers import sample_rows


@pytest.fixture
def rows() -> list[Row]:
    return sample_rows()


@pytest.fixture
def rows_file(tmp_path: Path, rows: list[Row]) -> Path:
    """Write the sample rows as a snapshot file with weekly revenue."""
    path = tmp_path / "rows.json"
    path.write_text(
        json.dumps(
            {
                "rows": [row.to_dict() for row in rows],
                "weeklyRevenue": {"c1": [70.0, 80.0, 150.0], "c2": [20.0, 30.0]},
            },
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def test_config(rows_file: Path) -> Config:
    """Create a test configuration pointing at the sample snapshot."""
    return Config(
        server=ServerConfig(),
        data=DataConfig(rows_file=rows_file),
        session=SessionConfig(),
    )
