from pctracker.db.operations import (
    delete_annotation,
    insert_annotation,
    read_annotations,
    read_catalog,
    update_annotation,
)
from pctracker.db.rest import DataStoreError, RestClient, get_http_client

__all__ = [
    "DataStoreError",
    "RestClient",
    "delete_annotation",
    "get_http_client",
    "insert_annotation",
    "read_annotations",
    "read_catalog",
    "update_annotation",
]
