"""BDD tests for pipeline batching, retry and lifecycle delivery."""

import pytest
from pytest_bdd import scenarios

# Load all pipeline feature scenarios; step definitions are in conftest.py
scenarios(".")

pytestmark = pytest.mark.integration
