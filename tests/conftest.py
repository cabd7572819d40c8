import logging
import os

import pytest
from openpyxl import Workbook

from propsxls.app_config import AppConfig
from propsxls.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Run every test from an empty directory without propsxls settings in the
    environment, so no local propsxls.yaml or .env file leaks into a test.
    """
    for name in ('PROPSXLS_CONFIG_FILE', 'PROPSXLS_LOG_LEVEL', 'PROPSXLS_FILE_ENCODING'):
        monkeypatch.delenv(name, raising=False)
    cwd = tmp_path / 'cwd'
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    yield
    # The CLI configures the package logger; undo it for the next test.
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def quiet_config():
    return AppConfig(show_progress=False)


@pytest.fixture
def write_properties():
    """Return a helper that writes a UTF-8 .properties file below a root directory."""
    def _write(root, relative_path, content):
        file_path = os.path.join(str(root), *relative_path.split('/'))
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)
        return file_path
    return _write


@pytest.fixture
def make_workbook():
    """Return a helper that saves the given rows as a single-sheet workbook."""
    def _make(path, rows, title='translations'):
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = title
        for row in rows:
            sheet.append(row)
        workbook.save(str(path))
        workbook.close()
        return str(path)
    return _make
