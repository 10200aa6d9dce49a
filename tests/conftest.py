"""Common setup for tests."""

from tests.mock_utils import MockFirestoreBuilder

# mockfirestore needs FieldFilter, transaction-aware get and sentinel updates
MockFirestoreBuilder.patch_db_read()
MockFirestoreBuilder.patch_db_write()
