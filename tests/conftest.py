import pytest

from validatable import MetadataRegistry


@pytest.fixture(autouse=True)
def clear_metadata_registry():
    """Clear the metadata cache before and after each test."""
    MetadataRegistry.invalidate()
    yield
    MetadataRegistry.invalidate()
