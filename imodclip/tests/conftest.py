import pytest

import imodclip
from imodclip.logging import LoggerType

from .fixtures.files_fixture import (
    asc_path,
    gen_path,
    grid,
    idf_path,
    ipf_path,
    model_dir,
)


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    imodclip.logging.configure(LoggerType.NULL)
