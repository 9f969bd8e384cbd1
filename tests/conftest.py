import pytest

from clearview.store import ImageStore
from tests.utils import make_image


@pytest.fixture
def png_bytes():
    return make_image()


@pytest.fixture
def images(tmp_path):
    return ImageStore(str(tmp_path / "cache"))
