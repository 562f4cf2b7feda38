"""
Strukturbaum im PDF
===================
Nachbearbeitung des von WeasyPrint geschriebenen Strukturbaums mit pikepdf.

WeasyPrint bildet HTML-Tags fest auf PDF-Strukturtypen ab und kennt
im Seiteninhalt keine Artefakte. Der HTML-Builder rendert Artefakte
deshalb in einem eigenen Container-Tag (blockquote → /BlockQuote).
Hier werden diese Strukturelemente aus dem Baum gelöst und ihre
markierten Inhalte im Content-Stream als /Artifact umgeschrieben.
"""

import logging
from collections import defaultdict
from typing import Iterator

import pikepdf


logger = logging.getLogger(__name__)

# HTML-Container für Artefakte und der Strukturtyp, den WeasyPrint daraus macht
ARTIFACT_HTML_TAG = "blockquote"
ARTIFACT_STRUCT_TYPE = "/BlockQuote"


def _kids(node) -> list:
    """/K als Liste (fehlend, einzelnes Objekt oder Array)."""
    kids = node.get("/K")
    if kids is None:
        return []
    if isinstance(kids, pikepdf.Array):
        return list(kids)
    return [kids]


def _is_struct_elem(obj) -> bool:
    return isinstance(obj, pikepdf.Dictionary) and "/S" in obj


def iter_struct_elements(pdf: pikepdf.Pdf) -> Iterator[pikepdf.Dictionary]:
    """Alle Strukturelemente in Dokumentreihenfolge (Tiefensuche)."""
    if "/StructTreeRoot" not in pdf.Root:
        return
    stack = list(reversed(_kids(pdf.Root.StructTreeRoot)))
    while stack:
        elem = stack.pop()
        if not _is_struct_elem(elem):
            continue
        yield elem
        stack.extend(reversed(_kids(elem)))


def _collect_mcids(elem, found: dict[tuple, set[int]]):
    """MCIDs eines Teilbaums, gruppiert nach Seite (objgen)."""
    stack = [(elem, None)]
    while stack:
        current, inherited = stack.pop()
        page = current.get("/Pg", inherited)
        for kid in _kids(current):
            if isinstance(kid, int):
                if page is not None:
                    found[page.objgen].add(int(kid))
            elif isinstance(kid, pikepdf.Dictionary):
                if "/MCID" in kid:
                    kid_page = kid.get("/Pg", page)
                    if kid_page is not None:
                        found[kid_page.objgen].add(int(kid.MCID))
                elif "/S" in kid:
                    stack.append((kid, page))


def _rewrite_page(pdf: pikepdf.Pdf, page: pikepdf.Page, mcids: set[int]):
    """/Tag <</MCID n>> BDC → /Artifact BMC für die gegebenen MCIDs."""
    instructions = []
    for operands, operator in pikepdf.parse_content_stream(page):
        if (
            str(operator) == "BDC"
            and len(operands) == 2
            and isinstance(operands[1], pikepdf.Dictionary)
            and operands[1].get("/MCID") in mcids
        ):
            instructions.append(([pikepdf.Name.Artifact], pikepdf.Operator("BMC")))
        else:
            instructions.append((operands, operator))
    page.obj.Contents = pdf.make_stream(pikepdf.unparse_content_stream(instructions))


def _clear_parent_tree(tree, page: pikepdf.Page, mcids: set[int]):
    """Einträge der umgeschriebenen MCIDs im ParentTree auf null setzen."""
    key = page.obj.get("/StructParents")
    parent_tree = tree.get("/ParentTree")
    if key is None or parent_tree is None or "/Nums" not in parent_tree:
        return
    nums = parent_tree.Nums
    for i in range(0, len(nums) - 1, 2):
        if nums[i] != key or not isinstance(nums[i + 1], pikepdf.Array):
            continue
        refs = nums[i + 1]
        for mcid in mcids:
            if mcid < len(refs):
                refs[mcid] = None


def convert_artifacts(pdf: pikepdf.Pdf) -> int:
    """
    Entfernt Artefakt-Container aus dem Strukturbaum.

    Ihre Inhalte bleiben sichtbar, sind aber danach als /Artifact
    markiert und damit für Screenreader unsichtbar.

    Returns:
        Anzahl entfernter Strukturelemente
    """
    if "/StructTreeRoot" not in pdf.Root:
        return 0
    tree = pdf.Root.StructTreeRoot

    removed = 0
    mcids: dict[tuple, set[int]] = defaultdict(set)
    stack = [tree]
    while stack:
        node = stack.pop()
        kids = _kids(node)
        kept = []
        for kid in kids:
            if _is_struct_elem(kid) and str(kid.S) == ARTIFACT_STRUCT_TYPE:
                _collect_mcids(kid, mcids)
                removed += 1
                continue
            kept.append(kid)
            if _is_struct_elem(kid):
                stack.append(kid)
        if len(kept) != len(kids):
            node.K = pikepdf.Array(kept)

    pages = {page.obj.objgen: page for page in pdf.pages}
    for objgen, page_mcids in mcids.items():
        page = pages.get(objgen)
        if page is None:
            continue
        _rewrite_page(pdf, page, page_mcids)
        _clear_parent_tree(tree, page, page_mcids)

    logger.debug("%d Artefakt-Container aus dem Strukturbaum entfernt", removed)
    return removed


def figures_without_alt(pdf: pikepdf.Pdf) -> int:
    """Anzahl der /Figure-Elemente ohne /Alt (oder mit leerem /Alt)."""
    return sum(
        1 for elem in iter_struct_elements(pdf)
        if str(elem.S) == "/Figure" and not str(elem.get("/Alt", "")).strip()
    )
