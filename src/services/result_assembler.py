"""Projection of resolved records into result view models.

Data products yield one :class:`DiscoveryItem` per resolved distribution;
facilities yield one item each; organisations yield
:class:`OrganizationItem` entries.  All values come from the request
snapshot: a reference that did not resolve simply leaves its field empty.

Backoffice fields are filled only when a :class:`BackofficeView` is
passed, which the search service does for privileged callers that asked
for specific versioning statuses.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.interfaces.user_directory import DirectoryUser
from src.models.catalog import Record
from src.models.discovery import DataServiceProvider, DiscoveryItem, OrganizationItem
from src.models.snapshot import Snapshot
from src.providers.taxonomy.store_taxonomy import category_id, is_scheme_category
from src.services.available_formats import AvailableFormatsGenerator
from src.services.plugin_registry import PluginSnapshot
from src.utils.logging import get_logger
from src.utils.text_normalizer import join_values

logger = get_logger(__name__)

INGESTOR = "ingestor"


@dataclass(frozen=True)
class BackofficeView:
    """Users indexed by auth identifier, for editor display names."""

    users: Mapping[str, DirectoryUser] = field(default_factory=dict)

    def editor_name(self, editor_id: str | None) -> str | None:
        if editor_id is None:
            return None
        if editor_id == INGESTOR:
            return "Ingestor"
        user = self.users.get(editor_id)
        return user.full_name if user is not None else None


def index_users(users: Iterable[DirectoryUser]) -> dict[str, DirectoryUser]:
    """Map users by auth identifier; on duplicates the first one is kept."""
    indexed: dict[str, DirectoryUser] = {}
    for user in users:
        if not user.auth_identifier:
            continue
        if user.auth_identifier in indexed:
            logger.warning("duplicate_user_identifier", auth_identifier=user.auth_identifier)
            continue
        indexed[user.auth_identifier] = user
    return indexed


def organization_name(record: Record, separator: str = ",") -> str | None:
    return join_values(record.texts("legalName"), separator=separator)


def sha256_hex(value: str | None) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest() if value else ""


def _unique(values: Iterable[str | None]) -> tuple[str, ...]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


class ResultAssembler:
    """Builds result items from a snapshot."""

    def __init__(
        self,
        formats: AvailableFormatsGenerator,
        groups: IProviderGroupResolver,
        api_host: str,
        api_context: str = "/api/v1",
    ) -> None:
        self._formats = formats
        self._groups = groups
        self._base = api_host.rstrip("/") + api_context

    def _links(self, section: str, instance_id: str) -> tuple[str, str]:
        href = f"{self._base}/{section}/details/{instance_id}"
        return href, href + "?extended=true"

    def data_service_provider(self, organization: Record, snapshot: Snapshot) -> DataServiceProvider:
        countries = [
            c for address in snapshot.follow(organization, "address") for c in address.texts("country")
        ]
        group = self._groups.expand(organization.instance_id)
        related = tuple(
            i for i in (group.group_id, *group.sibling_ids) if i != organization.instance_id
        )
        return DataServiceProvider(
            instance_id=organization.instance_id,
            legal_name=organization_name(organization),
            url=organization.attr("URL") or organization.attr("url"),
            country=countries[0] if countries else None,
            related_ids=related,
        )

    # ------------------------------------------------------------------
    # Data products
    # ------------------------------------------------------------------

    def data_product_items(
        self,
        roots: Sequence[Record],
        snapshot: Snapshot,
        plugins: PluginSnapshot | None = None,
        backoffice: BackofficeView | None = None,
    ) -> list[DiscoveryItem]:
        """One item per distribution of each root, first occurrence wins."""
        items: dict[str, DiscoveryItem] = {}
        for product in roots:
            data_providers = _unique(
                organization_name(org) for org in snapshot.follow(product, "publisher")
            )
            categories = _unique(
                category_id(c) for c in snapshot.follow(product, "category") if is_scheme_category(c)
            )
            for distribution in snapshot.follow(product, "distribution"):
                if distribution.instance_id in items:
                    continue
                items[distribution.instance_id] = self._distribution_item(
                    product, distribution, snapshot, plugins, backoffice,
                    data_providers, categories,
                )
        return list(items.values())

    def _distribution_item(
        self,
        product: Record,
        distribution: Record,
        snapshot: Snapshot,
        plugins: PluginSnapshot | None,
        backoffice: BackofficeView | None,
        data_providers: tuple[str, ...],
        categories: tuple[str, ...],
    ) -> DiscoveryItem:
        providers = snapshot.walk(distribution, ("accessService", "provider"))
        href, href_extended = self._links("resources", distribution.instance_id)
        values = dict(
            id=distribution.instance_id,
            href=href,
            href_extended=href_extended,
            uid=distribution.uid,
            meta_id=distribution.meta_id,
            title=join_values(distribution.texts("title")),
            description=join_values(distribution.texts("description")),
            sha256id=sha256_hex(distribution.uid),
            available_formats=tuple(self._formats.generate(distribution, snapshot, plugins)),
            data_provider=data_providers,
            service_provider=_unique(organization_name(org) for org in providers),
            data_service_provider=(
                self.data_service_provider(providers[0], snapshot) if providers else None
            ),
            categories=categories or None,
        )
        if backoffice is not None:
            values.update(
                editor_id=distribution.editor_id,
                editor_full_name=backoffice.editor_name(distribution.editor_id),
                change_date=distribution.change_timestamp,
                versioning_status=product.status.value,
            )
        return DiscoveryItem(**values)

    # ------------------------------------------------------------------
    # Facilities
    # ------------------------------------------------------------------

    def facility_items(
        self,
        roots: Sequence[Record],
        snapshot: Snapshot,
        backoffice: BackofficeView | None = None,
    ) -> list[DiscoveryItem]:
        items: list[DiscoveryItem] = []
        for facility in roots:
            owner_ids = sorted(self._groups.owners_of(facility.instance_id))
            owners = _unique(self._groups.label(i) for i in owner_ids)
            categories = _unique(
                category_id(c) for c in snapshot.follow(facility, "category") if is_scheme_category(c)
            )
            href, href_extended = self._links("facilities", facility.instance_id)
            values = dict(
                id=facility.instance_id,
                href=href,
                href_extended=href_extended,
                uid=facility.uid,
                meta_id=facility.meta_id,
                title=join_values(facility.texts("title")),
                description=join_values(facility.texts("description")),
                sha256id=sha256_hex(facility.uid),
                data_provider=owners,
                categories=categories or None,
            )
            if backoffice is not None:
                values.update(
                    editor_id=facility.editor_id,
                    editor_full_name=backoffice.editor_name(facility.editor_id),
                    change_date=facility.change_timestamp,
                    versioning_status=facility.status.value,
                )
            items.append(DiscoveryItem(**values))
        return items

    # ------------------------------------------------------------------
    # Organisations
    # ------------------------------------------------------------------

    def organization_items(
        self, roots: Sequence[Record], snapshot: Snapshot
    ) -> list[OrganizationItem]:
        """Organisations with a legal name, sorted by name then id."""
        items: list[OrganizationItem] = []
        for organization in roots:
            name = organization_name(organization, separator=";")
            if name is None:
                continue
            countries = [
                c for a in snapshot.follow(organization, "address") for c in a.texts("country")
            ]
            items.append(
                OrganizationItem(
                    id=organization.instance_id,
                    name=name,
                    logo=organization.attr("logo"),
                    url=organization.attr("URL") or organization.attr("url"),
                    country=countries[0] if countries else None,
                )
            )
        return sorted(items, key=lambda i: (i.name or "", i.id))
