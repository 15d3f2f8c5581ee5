"""Shared test fixtures for permatrix."""

import pytest

from permatrix.catalog import DEFAULT_CATALOG
from permatrix.config.models import PermatrixConfig
from permatrix.editor import PermissionEditor
from permatrix.model import Grant, PermissionModel, Resource, sample_model


@pytest.fixture
def empty_model():
    return PermissionModel()


@pytest.fixture
def small_model():
    """Two resources, two roles, one filtered grant."""
    return PermissionModel(
        resources=[
            Resource(
                uri="configuration/entityTypes",
                grants=[
                    Grant(role="ADMIN", access=["READ", "CREATE"]),
                    Grant(role="VIEWER", access=["READ"]),
                ],
            ),
            Resource(
                uri="configuration/relationTypes",
                grants=[
                    Grant(
                        role="ADMIN",
                        access=["READ", "UPDATE"],
                        filter='equals(attributes.Country, "US")',
                    ),
                ],
            ),
        ]
    )


@pytest.fixture
def example_model():
    return sample_model()


@pytest.fixture
def editor(small_model):
    return PermissionEditor(small_model, catalog=DEFAULT_CATALOG)


@pytest.fixture
def empty_editor():
    return PermissionEditor()


@pytest.fixture
def sample_config():
    return PermatrixConfig()
