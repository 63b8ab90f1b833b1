"""Core catalog entities: records and the typed references between them.

Defines the entity-type enum, the status enum used for version visibility,
and the two frozen Pydantic v2 models every other component works with:

    - Reference — a weak ``(target type, target id)`` pointer.  It carries
      no data of its own and is meaningless without a snapshot to resolve it.
    - Record    — one catalog entity: identity fields, an ordered list of
      references per relation name, and free-form attributes.

Relation order is significant (for instance, the *first* supported
operation of a distribution is the one used to compute its formats), so
relations are stored as tuples in the order the store returned them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.utils.text_normalizer import as_text_list


class EntityType(str, Enum):  # noqa: UP042
    """Kinds of catalog records known to the entity store.

    The values are the store's own type names, so they can be used directly
    in store URLs and in reference payloads.
    """

    DATA_PRODUCT = "DATAPRODUCT"
    DISTRIBUTION = "DISTRIBUTION"
    WEBSERVICE = "WEBSERVICE"
    OPERATION = "OPERATION"
    MAPPING = "MAPPING"
    ORGANIZATION = "ORGANIZATION"
    CATEGORY = "CATEGORY"
    LOCATION = "LOCATION"
    PERIOD_OF_TIME = "PERIODOFTIME"
    IDENTIFIER = "IDENTIFIER"
    ADDRESS = "ADDRESS"
    FACILITY = "FACILITY"


class RecordStatus(str, Enum):  # noqa: UP042
    """Editorial status of a record version."""

    PUBLISHED = "PUBLISHED"
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    DISCARDED = "DISCARDED"
    ARCHIVED = "ARCHIVED"


# Payload keys that map onto typed Record fields instead of attributes.
_IDENTITY_KEYS = {
    "instanceId",
    "uid",
    "metaId",
    "status",
    "editorId",
    "changeTimestamp",
    "entityType",
}


class Reference(BaseModel):
    """Typed pointer from one record to another.

    Hashable, so references can be collected into sets while walking the
    reference graph.
    """

    model_config = ConfigDict(frozen=True)

    target_type: EntityType
    target_id: str
    uid: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Reference:
        """Build a reference from the store's ``{"entityType", "instanceId"}`` shape."""
        return cls(
            target_type=EntityType(payload["entityType"]),
            target_id=str(payload["instanceId"]),
            uid=payload.get("uid"),
        )


def _is_reference_payload(value: Any) -> bool:
    return isinstance(value, dict) and "entityType" in value and "instanceId" in value


class Record(BaseModel):
    """A catalog entity as returned by the entity store.

    ``instance_id`` is unique within ``entity_type``; the pair is the key a
    :class:`~src.models.snapshot.Snapshot` resolves references with.
    """

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    instance_id: str
    uid: str | None = None
    meta_id: str | None = None
    status: RecordStatus = RecordStatus.PUBLISHED
    editor_id: str | None = None
    change_timestamp: str | None = None
    # relation name -> ordered references
    relations: dict[str, tuple[Reference, ...]] = Field(default_factory=dict)
    # every non-identity, non-reference field of the payload
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[EntityType, str]:
        return (self.entity_type, self.instance_id)

    def references(self, relation: str) -> tuple[Reference, ...]:
        """Ordered references of *relation*; empty when the relation is absent."""
        return self.relations.get(relation, ())

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def texts(self, name: str) -> list[str]:
        """Attribute *name* as a list of strings (multi-valued text fields)."""
        return as_text_list(self.attributes.get(name))

    @classmethod
    def from_payload(cls, entity_type: EntityType, payload: dict[str, Any]) -> Record:
        """Parse the store's camelCase JSON representation of a record.

        Any value shaped like a reference, or a list of such values, becomes
        a relation; everything else that is not an identity field lands in
        ``attributes`` untouched.
        """
        relations: dict[str, tuple[Reference, ...]] = {}
        attributes: dict[str, Any] = {}

        for key, value in payload.items():
            if key in _IDENTITY_KEYS:
                continue
            if _is_reference_payload(value):
                relations[key] = (Reference.from_payload(value),)
            elif (
                isinstance(value, list)
                and value
                and all(_is_reference_payload(v) for v in value)
            ):
                relations[key] = tuple(Reference.from_payload(v) for v in value)
            else:
                attributes[key] = value

        status = payload.get("status")
        return cls(
            entity_type=entity_type,
            instance_id=str(payload["instanceId"]),
            uid=payload.get("uid"),
            meta_id=payload.get("metaId"),
            status=RecordStatus(status) if status else RecordStatus.PUBLISHED,
            editor_id=payload.get("editorId"),
            change_timestamp=payload.get("changeTimestamp"),
            relations=relations,
            attributes=attributes,
        )
