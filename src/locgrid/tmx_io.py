"""TMX 1.4b export and import of whole localization tables.

Uses lxml for XML handling.  Each table row becomes one ``<tu>`` with a
``<tuv xml:lang="...">`` per language; the language *name* is used as
``xml:lang``.  Cells holding ``__MISSING__`` are left out on export and
come back as ``__MISSING__`` on import, while empty strings survive as
empty ``<seg/>`` elements.

The header also lists every language name in column order, and each
``<tuv>`` names its column, so every column survives a round trip even
when its name repeats or it was never translated.
"""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from locgrid import __version__
from locgrid.models import MISSING, Language, LocalizationTable
from locgrid.snapshot_io import write_atomic
from locgrid.store import LocalizationStore

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

# Header <prop> listing every language in column order, and the <tuv>
# <prop> naming the column a segment belongs to.
LANGUAGE_PROP = "x-locgrid-language"
COLUMN_PROP = "x-locgrid-column"

# ── Writing ─────────────────────────────────────────────────────


def build_tmx(store: LocalizationStore) -> etree._Element:
    """Build the ``<tmx>`` element tree for *store*."""
    names = store.language_names()
    srclang = names[0] if names else "*all*"

    root = etree.Element("tmx", version="1.4")
    h_attribs = {
        "creationtool": "locgrid",
        "creationtoolversion": __version__,
        "segtype": "phrase",
        "o-tmf": "locgrid",
        "adminlang": "en",
        "srclang": srclang,
        "datatype": "plaintext",
    }
    header = etree.SubElement(root, "header", **h_attribs)
    for name in names:
        prop = etree.SubElement(header, "prop", type=LANGUAGE_PROP)
        prop.text = name

    body = etree.SubElement(root, "body")
    for row in range(store.row_count):
        tu = etree.SubElement(body, "tu", tuid=str(row + 1))
        for lang_index, name in enumerate(names):
            value = store.cell(lang_index, row)
            if value == MISSING:
                continue
            tuv = etree.SubElement(tu, "tuv")
            tuv.set(XML_LANG, name)
            col_prop = etree.SubElement(tuv, "prop", type=COLUMN_PROP)
            col_prop.text = str(lang_index)
            seg = etree.SubElement(tuv, "seg")
            seg.text = value
    return root


def export_tmx(store: LocalizationStore, path: str | Path, *, backup: bool = True) -> None:
    """Write *store* to a TMX file atomically."""
    xml_bytes = etree.tostring(
        build_tmx(store),
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    )
    write_atomic(path, xml_bytes, backup=backup, suffix=".tmx.tmp")


# ── Parsing ─────────────────────────────────────────────────────


def _seg_text(tuv_elem: etree._Element) -> str:
    """Extract the full text content of a <seg> element.

    For mixed content (inline tags) all text nodes are concatenated.
    """
    seg = tuv_elem.find("seg")
    if seg is None:
        return ""
    return "".join(seg.itertext())


def _normalize_lang(lang: str) -> str:
    """Normalize a language code for comparison (case-insensitive)."""
    return lang.strip().lower()


def _declared_languages(header: etree._Element | None) -> list[str] | None:
    """Language names listed in the header, in column order, if any."""
    if header is None:
        return None
    names = [prop.text or "" for prop in header.findall("prop") if prop.get("type") == LANGUAGE_PROP]
    return names or None


def _column_of(tuv: etree._Element, declared: list[str]) -> int | None:
    """Column a <tuv> belongs to: its column prop, else its first matching language."""
    for prop in tuv.findall("prop"):
        if prop.get("type") != COLUMN_PROP:
            continue
        try:
            index = int((prop.text or "").strip())
        except ValueError:
            break
        if 0 <= index < len(declared):
            return index
        break
    lang = _normalize_lang(tuv.get(XML_LANG) or tuv.get("lang", ""))
    for index, name in enumerate(declared):
        if _normalize_lang(name) == lang:
            return index
    return None


def _import_by_column(body: etree._Element, declared: list[str]) -> LocalizationTable:
    rows: list[dict[int, str]] = []
    for tu in body.findall("tu"):
        cells: dict[int, str] = {}
        for tuv in tu.findall("tuv"):
            index = _column_of(tuv, declared)
            if index is not None:
                cells.setdefault(index, _seg_text(tuv))
        rows.append(cells)

    return LocalizationTable(
        languages=[Language(name) for name in declared],
        columns=[[cells.get(i, MISSING) for cells in rows] for i in range(len(declared))],
        selected_language=0,
    )


def import_tmx(path: str | Path) -> LocalizationTable:
    """Parse a TMX file into a table.

    Files written by :func:`export_tmx` list every language in the header,
    so columns come back by position, names and all, even a column that
    is entirely ``__MISSING__``.  For other files the header ``srclang``
    becomes the default language and the remaining languages follow in
    the order they first appear.  Languages compare case-insensitively
    and keep the spelling they were first seen with.

    Raises:
        etree.XMLSyntaxError: On malformed XML.
        ValueError: On structural problems.
    """
    path = Path(path)
    tree = etree.parse(str(path))  # noqa: S320
    root = tree.getroot()

    tag = etree.QName(root.tag).localname if "}" in root.tag else root.tag
    if tag.lower() != "tmx":
        raise ValueError(f"Root element is <{root.tag}>, expected <tmx>")

    body = root.find("body")
    if body is None:
        raise ValueError("TMX file has no <body> element")

    header = root.find("header")
    declared = _declared_languages(header)
    if declared is not None:
        return _import_by_column(body, declared)

    order: list[str] = []  # normalized codes, default first
    spelling: dict[str, str] = {}

    def _register(lang: str) -> str:
        key = _normalize_lang(lang)
        if key not in spelling:
            spelling[key] = lang.strip()
            order.append(key)
        return key

    if header is not None:
        srclang = header.get("srclang", "")
        # "*all*" is a TMX convention meaning "not specified"
        if srclang.strip() and _normalize_lang(srclang) != "*all*":
            _register(srclang)

    rows: list[dict[str, str]] = []
    for tu in body.findall("tu"):
        cells: dict[str, str] = {}
        for tuv in tu.findall("tuv"):
            lang = tuv.get(XML_LANG) or tuv.get("lang", "")
            if not lang.strip():
                continue
            key = _register(lang)
            cells.setdefault(key, _seg_text(tuv))
        rows.append(cells)

    return LocalizationTable(
        languages=[Language(spelling[key]) for key in order],
        columns=[[cells.get(key, MISSING) for cells in rows] for key in order],
        selected_language=0,
    )
