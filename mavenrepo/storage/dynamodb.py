"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

DynamoDB-backed catalog store.

Single-table layout: every entity of one ancestor group shares a partition
key ``<namespace>#<root kind>#<root name>`` and is addressed inside it by a
sort key listing its ``kind#name`` path. SpecRefs therefore live in the
same partition as their HeadRef, and listing the versions of one artifact
is a single ``Query``.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from .catalog_store import (DEFAULT_NAMESPACE, CatalogEntity, CatalogKey,
                            CatalogStore, CatalogTransaction, put_entity,
                            validate_window)
from .errors import (CatalogStoreError, CatalogStoreUnavailableError,
                     TransactionConflict, error_code,
                     looks_like_transient_cloud_failure)

_LOGGER = logging.getLogger(__name__)

# DynamoDB caps a single TransactWriteItems call at 100 actions.
MAX_TRANSACTION_ITEMS = 100

_PK = "pk"
_SK = "sk"
_KIND = "entity_kind"
_NAMESPACE = "entity_namespace"
_NAME = "entity_name"
_PARENT = "entity_parent"
_VERSION = "entity_version"
_RESERVED = {_PK, _SK, _KIND, _NAMESPACE, _NAME, _PARENT, _VERSION}

_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()


def partition_key(key: CatalogKey) -> str:
    root = key.root
    return f"{key.namespace}#{root.kind}#{root.name}"


def sort_key(key: CatalogKey) -> str:
    return "/".join(f"{kind}#{name}" for kind, name in key.path)


def _key_attributes(key: CatalogKey) -> Dict[str, Any]:
    return {_PK: {"S": partition_key(key)}, _SK: {"S": sort_key(key)}}


def _to_item(entity: CatalogEntity, version: int) -> Dict[str, Any]:
    clashes = _RESERVED.intersection(entity.properties)
    if clashes:
        raise CatalogStoreError(
            f"Entity properties use reserved names: {sorted(clashes)}"
        )
    item = _key_attributes(entity.key)
    item[_KIND] = {"S": entity.key.kind}
    item[_NAMESPACE] = {"S": entity.key.namespace}
    item[_NAME] = {"S": entity.key.name}
    item[_VERSION] = {"N": str(version)}
    if entity.key.parent is not None:
        item[_PARENT] = {"S": sort_key(entity.key.parent)}
    for name, value in entity.properties.items():
        item[name] = _SERIALIZER.serialize(value)
    return item


def _from_item(key: CatalogKey, item: Mapping[str, Any]) -> CatalogEntity:
    properties = {
        name: _plain(_DESERIALIZER.deserialize(value))
        for name, value in item.items()
        if name not in _RESERVED
    }
    return CatalogEntity(key=key, properties=properties)


def _key_from_item(item: Mapping[str, Any]) -> CatalogKey:
    namespace = item[_NAMESPACE]["S"]
    kind, name = item[_KIND]["S"], item[_NAME]["S"]
    own = f"{kind}#{name}"
    sk = item[_SK]["S"]
    if sk == own:
        return CatalogKey(kind, name, namespace)

    # Names may contain "/", so the root comes from the partition key and
    # only intermediate ancestors are split out of the sort key.
    _, root_kind, root_name = item[_PK]["S"].split("#", 2)
    parent = CatalogKey(root_kind, root_name, namespace)
    middle = sk[len(sort_key(parent)) + 1 : len(sk) - len(own) - 1]
    for segment in filter(None, middle.split("/")):
        segment_kind, segment_name = segment.split("#", 1)
        parent = CatalogKey(segment_kind, segment_name, namespace, parent)
    return CatalogKey(kind, name, namespace, parent)


def _plain(value: Any) -> Any:
    """Undo the Decimal/set conversions TypeDeserializer applies."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {name: _plain(item) for name, item in value.items()}
    return value


def _translate(exc: Exception, action: str) -> CatalogStoreError:
    code = error_code(exc)
    if code in {"TransactionConflictException", "ConditionalCheckFailedException"}:
        return TransactionConflict(f"{action} conflicted: {exc}")
    if code == "TransactionCanceledException":
        reasons = getattr(exc, "response", {}).get("CancellationReasons") or []
        reason_codes = {r.get("Code") for r in reasons if isinstance(r, dict)}
        if reason_codes & {"ConditionalCheckFailed", "TransactionConflict"}:
            return TransactionConflict(f"{action} conflicted: {exc}")
    if looks_like_transient_cloud_failure(exc):
        return CatalogStoreUnavailableError(
            f"DynamoDB temporarily unavailable: {exc}"
        )
    return CatalogStoreError(f"{action} failed: {exc}")


class DynamoDBCatalogTransaction(CatalogTransaction):
    """Transaction committed through ``TransactWriteItems``."""

    def __init__(self, store: "DynamoDBCatalogStore") -> None:
        super().__init__()
        self._store = store

    def _read(self, key: CatalogKey) -> tuple[Optional[CatalogEntity], Any]:
        item = self._store._get_item(key)
        if item is None:
            return None, 0
        return _from_item(key, item), int(item[_VERSION]["N"])

    def _apply(
        self,
        writes: Sequence[CatalogEntity],
        reads: Mapping[CatalogKey, Any],
    ) -> None:
        actions: List[Dict[str, Any]] = []
        written = set()
        for entity in writes:
            written.add(entity.key)
            read_version = reads.get(entity.key)
            put: Dict[str, Any] = {
                "TableName": self._store.table_name,
                "Item": _to_item(entity, (read_version or 0) + 1),
            }
            if read_version is not None:
                put.update(_version_condition(read_version))
            actions.append({"Put": put})
        for key, read_version in reads.items():
            if key in written:
                continue
            check = {
                "TableName": self._store.table_name,
                "Key": _key_attributes(key),
            }
            check.update(_version_condition(read_version))
            actions.append({"ConditionCheck": check})
        if len(actions) > MAX_TRANSACTION_ITEMS:
            raise CatalogStoreError(
                f"Transaction needs {len(actions)} actions; DynamoDB allows "
                f"{MAX_TRANSACTION_ITEMS}"
            )
        try:
            self._store.client.transact_write_items(TransactItems=actions)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "Catalog commit") from exc


def _version_condition(version: int) -> Dict[str, Any]:
    if version == 0:
        return {"ConditionExpression": "attribute_not_exists(pk)"}
    return {
        "ConditionExpression": "#version = :version",
        "ExpressionAttributeNames": {"#version": _VERSION},
        "ExpressionAttributeValues": {":version": {"N": str(version)}},
    }


class DynamoDBCatalogStore(CatalogStore):
    """Catalog entities in one DynamoDB table keyed by ``pk``/``sk``."""

    def __init__(self, table_name: str, *, client: Any | None = None) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        self.table_name = table_name
        if client is None:
            import boto3

            region = os.environ.get("CATALOG_REGION") or os.environ.get(
                "AWS_REGION"
            )
            client_kwargs: dict[str, Any] = {}
            if region:
                client_kwargs["region_name"] = region
            endpoint = os.environ.get("CATALOG_ENDPOINT")
            if endpoint:
                client_kwargs["endpoint_url"] = endpoint
            client = boto3.client("dynamodb", **client_kwargs)
        self.client = client

    def get(self, key: CatalogKey) -> Optional[CatalogEntity]:
        item = self._get_item(key)
        return None if item is None else _from_item(key, item)

    def put(self, entity: CatalogEntity) -> None:
        put_entity(self, entity)

    def transaction(self) -> DynamoDBCatalogTransaction:
        return DynamoDBCatalogTransaction(self)

    def query(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[CatalogEntity]:
        validate_window(offset, limit)
        items = self._matching_items(kind, namespace, filters)
        entities = [_from_item(_key_from_item(item), item) for item in items]
        entities.sort(key=lambda e: (e.key.namespace, e.key.name))
        end = None if limit is None else offset + limit
        return entities[offset:end]

    def count(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> int:
        return len(self._matching_items(kind, namespace, filters))

    def _get_item(self, key: CatalogKey) -> Optional[Mapping[str, Any]]:
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=_key_attributes(key),
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, f"Reading {key}") from exc
        return response.get("Item") or None

    def _matching_items(
        self,
        kind: str,
        namespace: Optional[str],
        filters: Optional[Mapping[str, Any]],
    ) -> List[Mapping[str, Any]]:
        names: Dict[str, str] = {"#kind": _KIND}
        values: Dict[str, Any] = {":kind": {"S": kind}}
        clauses = ["#kind = :kind"]
        for index, (name, value) in enumerate(sorted((filters or {}).items())):
            names[f"#f{index}"] = name
            values[f":f{index}"] = _SERIALIZER.serialize(value)
            clauses.append(f"#f{index} = :f{index}")

        params: Dict[str, Any] = {"TableName": self.table_name}
        partition = _artifact_partition(kind, namespace, filters)
        if partition is not None:
            # Versions of one artifact share the HeadRef's partition.
            params["KeyConditionExpression"] = "pk = :pk"
            values[":pk"] = {"S": partition}
            operation = self.client.query
        else:
            if namespace is not None:
                names["#namespace"] = _NAMESPACE
                values[":namespace"] = {"S": namespace}
                clauses.append("#namespace = :namespace")
            operation = self.client.scan
        params["FilterExpression"] = " AND ".join(clauses)
        params["ExpressionAttributeNames"] = names
        params["ExpressionAttributeValues"] = values

        items: List[Mapping[str, Any]] = []
        while True:
            try:
                response = operation(**params)
            except (ClientError, BotoCoreError) as exc:
                raise _translate(exc, f"Listing {kind}") from exc
            items.extend(response.get("Items", []))
            start_key = response.get("LastEvaluatedKey")
            if not start_key:
                return items
            params["ExclusiveStartKey"] = start_key


def _artifact_partition(
    kind: str,
    namespace: Optional[str],
    filters: Optional[Mapping[str, Any]],
) -> Optional[str]:
    if kind != "SpecRef" or namespace is None or not filters:
        return None
    group_id = filters.get("groupId")
    artifact_id = filters.get("artifactId")
    if not isinstance(group_id, str) or not isinstance(artifact_id, str):
        return None
    return f"{namespace}#HeadRef#{group_id}:{artifact_id}"
