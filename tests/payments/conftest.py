import pytest
from payments.gateway import reset_gateways


@pytest.fixture(autouse=True)
def _fresh_gateways():
    reset_gateways()
    yield
    reset_gateways()
