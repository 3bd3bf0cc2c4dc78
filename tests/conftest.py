import logging
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def test_dir() -> Path:
    return Path(__file__).parent


@pytest.fixture(scope="session")
def project_dir(test_dir: Path) -> Path:
    return test_dir.parent


@pytest.fixture(scope="session")
def pyproject_toml(project_dir: Path) -> Path:
    return project_dir.joinpath("pyproject.toml").resolve(strict=True)


@pytest.fixture(autouse=True)
def propagate_logs() -> Iterator[None]:
    # 'caplog' only sees records that reach the root logger.
    logger = logging.getLogger("trimodel")
    propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = propagate
