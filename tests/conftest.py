import pytest

from .builders import write_model

@pytest.fixture
def model_dir(tmp_path):
    """A base directory holding a consistent player/ctm_sas_variantA triple."""
    return write_model(tmp_path)
