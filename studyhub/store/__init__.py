"""Single-table document store: codec, key design, conditions, and backends."""

from __future__ import annotations

from studyhub.store.base import DocumentStore, Increment, Item, Query
from studyhub.store.codec import decode, decode_item, encode, encode_item
from studyhub.store.conditions import (
    AttributeExists,
    AttributeNotExists,
    Condition,
    Equals,
    any_equals,
    exists_item,
    not_exists_item,
)
from studyhub.store.dynamodb import DynamoDBDocumentStore
from studyhub.store.factory import create_document_store
from studyhub.store.keys import GSI1, GSI2, IndexKey, IndexSpec, ItemKey
from studyhub.store.memory import MemoryDocumentStore

__all__ = [
    "DocumentStore",
    "Increment",
    "Item",
    "Query",
    "encode",
    "decode",
    "encode_item",
    "decode_item",
    "Condition",
    "AttributeExists",
    "AttributeNotExists",
    "Equals",
    "any_equals",
    "exists_item",
    "not_exists_item",
    "DynamoDBDocumentStore",
    "MemoryDocumentStore",
    "create_document_store",
    "GSI1",
    "GSI2",
    "IndexKey",
    "IndexSpec",
    "ItemKey",
]
