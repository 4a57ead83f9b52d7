"""
Container codec - embeds diagram XML inside a .drawio.svg document.

The draw.io editor keeps the diagram in the ``content`` attribute of the
SVG root element:

    content="&lt;mxfile&gt;&lt;diagram id=&quot;d&quot; name=&quot;P&quot;&gt;PAYLOAD&lt;/diagram&gt;&lt;/mxfile&gt;"

PAYLOAD is the XML, percent-encoded like JavaScript's encodeURIComponent,
raw-deflated (no zlib header) and base64-encoded.

Caveat: extraction finds the payload with a pattern match, so XML that
itself contains a literal ``</diagram>`` does not survive a round trip.
"""

import base64
import binascii
import logging
import re
import xml.etree.ElementTree as ET
import zlib
from typing import Optional
from urllib.parse import quote, unquote

from .errors import MalformedDocumentError
from .graph import Graph

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

# Characters encodeURIComponent leaves alone (besides letters and digits)
_URI_COMPONENT_SAFE = "-_.!~*'()"

PLACEHOLDER = "replaceme"

CONTENT_TEMPLATE = (
    "&lt;mxfile&gt;&lt;diagram id=&quot;d&quot; name=&quot;P&quot;&gt;"
    "{payload}"
    "&lt;/diagram&gt;&lt;/mxfile&gt;"
)

_CONTENT_RE = re.compile(r'content="([^"]+)"')
_DIAGRAM_RE = re.compile(r"<diagram[^>]*>([^<]+)</diagram>")

ET.register_namespace("", SVG_NS)


def encode_payload(xml: str) -> str:
    """Percent-encode, raw-deflate and base64-encode diagram XML."""
    encoded = quote(xml, safe=_URI_COMPONENT_SAFE).encode("ascii")
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    compressed = compressor.compress(encoded) + compressor.flush()
    return base64.b64encode(compressed).decode("ascii")


def decode_payload(data: str) -> str:
    """Reverse encode_payload."""
    try:
        compressed = base64.b64decode(data.strip(), validate=False)
        inflated = zlib.decompress(compressed, -zlib.MAX_WBITS)
        return unquote(inflated.decode("utf-8"), errors="strict")
    except (binascii.Error, zlib.error, UnicodeDecodeError) as e:
        raise MalformedDocumentError(f"Diagram payload could not be decoded: {e}") from e


def _unescape(text: str) -> str:
    return (
        text.replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&amp;", "&")
    )


def render_document(graph: Optional[Graph] = None) -> str:
    """
    Build the SVG canvas a diagram is stored in.

    The canvas is empty (shapes are not rendered) and sized to the bounds
    of the graph's top-level nodes.
    """
    _, _, right, bottom = graph.bounds() if graph is not None else (0, 0, 0, 0)
    width = max(int(right) + 1, 1)
    height = max(int(bottom) + 1, 1)

    svg = ET.Element(f"{{{SVG_NS}}}svg", {
        "version": "1.1",
        "width": f"{width}px",
        "height": f"{height}px",
        "viewBox": f"-0.5 -0.5 {width} {height}",
        "style": f"left: 0px; top: 0px; width: 100%; height: 100%; display: block; "
                 f"min-width: {width}px; min-height: {height}px;",
    })
    layers = ET.SubElement(svg, f"{{{SVG_NS}}}g")
    # background, drawing, overlay and decorator panes of the mxGraph canvas
    for _ in range(4):
        ET.SubElement(layers, f"{{{SVG_NS}}}g")
    return ET.tostring(svg, encoding="unicode")


def embed(xml: str, document: Optional[str] = None) -> str:
    """
    Store diagram XML in the content attribute of an SVG document.

    The attribute is set to a placeholder and the escaped payload is
    spliced in as text, so the entities in CONTENT_TEMPLATE are written
    verbatim.
    """
    try:
        svg = ET.fromstring(document or render_document())
    except ET.ParseError as e:
        raise MalformedDocumentError(f"Container document is not valid markup: {e}") from e

    svg.set("content", PLACEHOLDER)
    markup = ET.tostring(svg, encoding="unicode")
    content = CONTENT_TEMPLATE.format(payload=encode_payload(xml))
    return markup.replace(f'content="{PLACEHOLDER}"', f'content="{content}"', 1)


def extract(text: str) -> Optional[str]:
    """
    Recover diagram XML from a container document.

    Returns None when the document has no content attribute or the
    attribute holds no compressed diagram.
    """
    content_match = _CONTENT_RE.search(text)
    if not content_match:
        logger.debug("Container has no content attribute")
        return None

    decoded = _unescape(content_match.group(1))
    diagram_match = _DIAGRAM_RE.search(decoded)
    if not diagram_match:
        logger.debug("Content attribute holds no compressed diagram")
        return None

    return decode_payload(diagram_match.group(1))
