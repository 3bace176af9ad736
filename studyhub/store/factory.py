"""Construct a document store from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from studyhub.store.dynamodb import DynamoDBDocumentStore
from studyhub.store.memory import MemoryDocumentStore

if TYPE_CHECKING:
    from studyhub.config.store import StoreConfig
    from studyhub.store.base import DocumentStore


def create_document_store(config: StoreConfig) -> DocumentStore:
    """Create the document store selected by ``config.backend``.

    Parameters
    ----------
    config : StoreConfig
        Store configuration section.

    Returns
    -------
    DocumentStore
        A DynamoDB-backed or in-memory store.

    Raises
    ------
    ValueError
        If the backend is unknown.
    """
    if config.backend == "dynamodb":
        return DynamoDBDocumentStore.from_config(config)
    elif config.backend == "memory":
        return MemoryDocumentStore()
    else:
        raise ValueError(f"Unknown store backend: {config.backend}")
