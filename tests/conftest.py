from io import BytesIO
from pathlib import Path
from typing import Callable

import pytest
from pbo_builder import SAMPLE_ENTRIES, SAMPLE_PROPERTIES, build_pbo


@pytest.fixture
def sample_pbo() -> bytes:
    return build_pbo(SAMPLE_PROPERTIES, SAMPLE_ENTRIES)


@pytest.fixture
def sample_stream(sample_pbo: bytes) -> BytesIO:
    return BytesIO(sample_pbo)


@pytest.fixture
def write_pbo(tmp_path: Path) -> Callable[..., Path]:
    def _write(data: bytes, name: str = "sample.pbo") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
