"""
Minimal CycloneDX 1.1 bill of materials for IQ Server submission.

One library component per audited coordinate; vulnerable components carry
their OSS Index findings through the vulnerability extension namespace.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Iterable

from core.models import PackageCoordinate, VulnerabilityRecord

logger = logging.getLogger(__name__)

BOM_NAMESPACE = "http://cyclonedx.org/schema/bom/1.1"
VULNERABILITY_NAMESPACE = "http://cyclonedx.org/schema/ext/vulnerability/1.0"
BOM_VERSION = "1"
VULNERABILITY_SOURCE = "ossindex"

ET.register_namespace("v", VULNERABILITY_NAMESPACE)


def _bom(tag: str) -> str:
    return f"{{{BOM_NAMESPACE}}}{tag}"


def _vuln(tag: str) -> str:
    return f"{{{VULNERABILITY_NAMESPACE}}}{tag}"


def _text_element(parent: ET.Element, tag: str, text: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = text
    return element


def _add_vulnerabilities(component: ET.Element, record: VulnerabilityRecord) -> None:
    container = ET.SubElement(component, _vuln("vulnerabilities"))
    for vulnerability in record.vulnerabilities:
        entry = ET.SubElement(container, _vuln("vulnerability"), {"ref": record.coordinates})
        _text_element(entry, _vuln("id"), vulnerability.cve)

        source = ET.SubElement(entry, _vuln("source"), {"name": VULNERABILITY_SOURCE})
        _text_element(source, _vuln("url"), vulnerability.reference)

        rating = ET.SubElement(ET.SubElement(entry, _vuln("ratings")), _vuln("rating"))
        score = ET.SubElement(rating, _vuln("score"))
        _text_element(score, _vuln("base"), str(vulnerability.cvss_score))
        if vulnerability.cvss_vector:
            _text_element(rating, _vuln("vector"), vulnerability.cvss_vector)

        _text_element(entry, _vuln("description"), vulnerability.description)


def build_sbom(records: Iterable[VulnerabilityRecord]) -> str:
    """
    Render audit results as a CycloneDX 1.1 XML document.

    Args:
        records: Audit results; records whose coordinates are not package URLs are skipped

    Returns:
        XML document with declaration
    """
    root = ET.Element(_bom("bom"), {"version": BOM_VERSION})
    components = ET.SubElement(root, _bom("components"))

    for record in records:
        try:
            coordinate = PackageCoordinate.parse(record.coordinates)
        except ValueError as e:
            logger.warning(f"Leaving {record.coordinates} out of the bill of materials: {e}")
            continue

        component = ET.SubElement(
            components,
            _bom("component"),
            {"type": "library", "bom-ref": coordinate.purl},
        )
        _text_element(component, _bom("name"), coordinate.name)
        _text_element(component, _bom("version"), coordinate.version)
        if coordinate.namespace:
            _text_element(component, _bom("group"), coordinate.namespace)
        _text_element(component, _bom("purl"), coordinate.purl)

        if record.is_vulnerable:
            _add_vulnerabilities(component, record)

    ET.indent(root, space="  ")
    document = ET.tostring(
        root,
        encoding="UTF-8",
        xml_declaration=True,
        default_namespace=BOM_NAMESPACE,
    )
    return document.decode("utf-8")
