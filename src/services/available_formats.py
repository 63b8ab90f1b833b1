"""Available-format computation for distributions.

Decides, from a distribution and its operation metadata, which formats a
client can retrieve the data in and under which URL.  Everything is read
from the request snapshot (distribution -> supportedOperation -> mapping)
and from the current plugin snapshot.

Rules, in order:

    1. Downloadable file: a download URL, no access service and a format
       IRI give exactly one ORIGINAL format named after the IRI's last
       segment.
    2. Otherwise only the *first* supported operation is considered; no
       operation means no formats.
    3. Plugin relations add CONVERTED formats (GeoJSON or CovJSON family).
    4. Mappings on ``encodingFormat`` add ORIGINAL formats (OGC image
       formats, WFS json, GeoJSON spellings, anything else verbatim).
    5. If nothing was produced yet, each media type the operation
       ``returns`` becomes a format.
"""

from __future__ import annotations

import re

from src.models.catalog import Record
from src.models.discovery import AvailableFormat, AvailableFormatType, PluginRelation
from src.models.snapshot import Snapshot
from src.services.plugin_registry import PluginSnapshot
from src.utils.text_normalizer import as_text_list

GEOJSON = "application/epos.geo+json"
WMS = "application/vnd.ogc.wms_xml"
WMTS = "application/vnd.ogc.wmts_xml"

_GEOJSON_OUTPUTS = {
    "application/epos.geo+json",
    "application/epos.table.geo+json",
    "application/epos.map.geo+json",
}
_COVJSON_OUTPUTS = {"application/epos.graph.covjson", "application/epos.covjson"}
_GEOJSON_PATTERN = re.compile(r"geo(?:json|\+json|-json)")


def _is_geojson(value: str) -> bool:
    return "geo%2Bjson" in value or bool(_GEOJSON_PATTERN.search(value.lower()))


class AvailableFormatsGenerator:
    """Builds :class:`AvailableFormat` lists with links under *api_host*."""

    def __init__(self, api_host: str, api_context: str = "/api/v1") -> None:
        base = api_host.rstrip("/") + api_context
        self._execute = base + "/execute/"
        self._ogc_execute = base + "/ogcexecute/"

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def href(self, distribution: Record, fmt: str) -> str:
        return f"{self._execute}{distribution.instance_id}?format={fmt}"

    def href_converted(self, distribution: Record, relation: PluginRelation) -> str:
        return (
            f"{self.href(distribution, relation.output_format)}"
            f"&inputFormat={relation.input_format}&pluginId={relation.plugin_id}"
        )

    def href_ogc(self, distribution: Record) -> str:
        return f"{self._ogc_execute}{distribution.instance_id}"

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(
        self,
        distribution: Record,
        snapshot: Snapshot,
        plugins: PluginSnapshot | None = None,
    ) -> list[AvailableFormat]:
        download_urls = as_text_list(distribution.attr("downloadURL"))
        format_iri = distribution.attr("format")
        if download_urls and not distribution.references("accessService") and format_iri:
            fmt = str(format_iri).rstrip("/").split("/")[-1]
            return [
                AvailableFormat(
                    original_format=fmt,
                    format=fmt,
                    href=",".join(download_urls),
                    label=fmt.upper(),
                )
            ]

        operations = distribution.references("supportedOperation")
        if not operations:
            return []
        operation = snapshot.resolve(operations[0])
        if operation is None:
            return []

        formats: list[AvailableFormat] = []
        if plugins is not None:
            for relation in plugins.for_distribution(distribution.instance_id):
                converted = self._converted(distribution, relation)
                if converted is not None:
                    formats.append(converted)

        template = operation.attr("template")
        mappings = snapshot.follow(operation, "mapping")
        if template and mappings:
            formats.extend(self._from_mappings(distribution, str(template), mappings))

        if not formats:
            for returns in operation.texts("returns"):
                geojson = _is_geojson(returns) or "geo+json" in returns
                formats.append(
                    AvailableFormat(
                        original_format=returns,
                        format=GEOJSON if geojson else returns,
                        href=self.href(distribution, returns),
                        label="GEOJSON" if geojson else returns.upper(),
                    )
                )
        return formats

    def _converted(
        self, distribution: Record, relation: PluginRelation
    ) -> AvailableFormat | None:
        if relation.output_format in _GEOJSON_OUTPUTS:
            label = "GEOJSON"
        elif relation.output_format in _COVJSON_OUTPUTS:
            label = "COVJSON"
        else:
            return None
        return AvailableFormat(
            original_format=relation.input_format,
            format=relation.output_format,
            href=self.href_converted(distribution, relation),
            label=label,
            type=AvailableFormatType.CONVERTED,
            input_format=relation.input_format,
            plugin_id=relation.plugin_id,
        )

    def _from_mappings(
        self, distribution: Record, template: str, mappings: list[Record]
    ) -> list[AvailableFormat]:
        formats: list[AvailableFormat] = []
        lowered = template.lower()
        for mapping in mappings:
            if "encodingFormat" not in " ".join(mapping.texts("property")):
                continue
            for value in mapping.texts("paramValue"):
                if value.startswith("image/"):
                    if "service=wms" in lowered or _names_service(mappings, "WMS", mapping):
                        formats.append(self._ogc(distribution, value, WMS, "WMS"))
                    elif "service=wmts" in lowered or _names_service(mappings, "WMTS", mapping):
                        formats.append(self._ogc(distribution, value, WMTS, "WMTS"))
                elif value == "json" and (
                    "service=wfs" in lowered or _names_service(mappings, "WFS", mapping)
                ):
                    formats.append(
                        AvailableFormat(
                            original_format=value,
                            format=GEOJSON,
                            href=self.href(distribution, "json"),
                            label=f"GEOJSON ({value})",
                        )
                    )
                elif _is_geojson(value):
                    formats.append(
                        AvailableFormat(
                            original_format=value,
                            format=GEOJSON,
                            href=self.href(distribution, value),
                            label=f"GEOJSON ({value})",
                        )
                    )
                else:
                    formats.append(
                        AvailableFormat(
                            original_format=value,
                            format=value,
                            href=self.href(distribution, value),
                            label=value.upper(),
                        )
                    )
        return formats

    def _ogc(self, distribution: Record, value: str, fmt: str, label: str) -> AvailableFormat:
        return AvailableFormat(
            original_format=value,
            format=fmt,
            href=self.href_ogc(distribution),
            label=label,
        )


def _names_service(mappings: list[Record], service: str, current: Record) -> bool:
    """True when a ``service`` mapping selects *service*."""
    for mapping in mappings:
        variable = mapping.attr("variable")
        if not variable or str(variable).lower() != "service":
            continue
        default = str(mapping.attr("defaultValue") or "")
        if service in current.texts("paramValue") or service.lower() in default.lower():
            return True
    return False
