# tests/conftest.py

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Add the project root to sys.path so `import mhtml2html` works
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from mhtml2html.utils.logging_utils import get_logger  # noqa: E402

BOUNDARY = "----MultipartBoundary--5Xb1k9Qd----"
BASE_URL = "https://example.com/"

# 1x1 transparent PNG
PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwAD"
    "hgGAWjR9awAAAABJRU5ErkJggg=="
)

INDEX_HTML = (
    "<!DOCTYPE html>\n"
    "<html><head><title>Archived</title>\n"
    "<link rel=3D\"stylesheet\" href=3D\"style.css\" media=3D\"screen\" integrity=3D\"sha384-x\">\n"
    "</head><body>\n"
    "<p>caf=C3=A9</p>\n"
    "<img src=3D\"img.png\" alt=3D\"pixel\">\n"
    "<iframe src=3D\"cid:frame1\"></iframe>\n"
    "</body></html>"
)

STYLE_CSS = "body { background: url('img.png') no-repeat; }"

FRAME_HTML = "<html><head></head><body><p>inner frame</p></body></html>"


def build_mhtml(
    parts: List[Tuple[Dict[str, str], str]],
    boundary: str = BOUNDARY,
    content_type: Optional[str] = None,
) -> str:
    """
    Assemble an MHTML archive the way Chrome saves one.
    """
    if content_type is None:
        content_type = f'multipart/related;\n\ttype="text/html";\n\tboundary="{boundary}"'

    lines = [
        "From: <Saved by Blink>",
        f"Snapshot-Content-Location: {BASE_URL}index.html",
        "Subject: Archived page",
        "MIME-Version: 1.0",
        f"Content-Type: {content_type}",
        "",
        "",
    ]
    for headers, body in parts:
        lines.append(f"--{boundary}")
        lines.extend(f"{key}: {value}" for key, value in headers.items())
        lines.append("")
        lines.append(body)
        lines.append("")
    lines.append(f"--{boundary}--")
    lines.append("")
    return "\n".join(lines)


def html_part(body: str = INDEX_HTML, location: str = BASE_URL + "index.html",
              content_id: Optional[str] = "<index@mhtml.blink>") -> Tuple[Dict[str, str], str]:
    headers = {"Content-Type": "text/html", "Content-Transfer-Encoding": "quoted-printable"}
    if content_id:
        headers["Content-ID"] = content_id
    if location:
        headers["Content-Location"] = location
    return headers, body


def css_part(body: str = STYLE_CSS, location: str = BASE_URL + "style.css") -> Tuple[Dict[str, str], str]:
    return {
        "Content-Type": "text/css",
        "Content-Transfer-Encoding": "quoted-printable",
        "Content-Location": location,
    }, body


def png_part(location: str = BASE_URL + "img.png") -> Tuple[Dict[str, str], str]:
    return {
        "Content-Type": "image/png",
        "Content-Transfer-Encoding": "base64",
        "Content-Location": location,
    }, PNG_B64


def frame_part(body: str = FRAME_HTML, content_id: str = "<frame1>") -> Tuple[Dict[str, str], str]:
    return {
        "Content-Type": "text/html",
        "Content-ID": content_id,
        "Content-Transfer-Encoding": "quoted-printable",
    }, body


@pytest.fixture
def sample_mhtml() -> str:
    """Index page + stylesheet + image + one cid: frame."""
    return build_mhtml([html_part(), css_part(), png_part(), frame_part()])


@pytest.fixture
def warnings():
    """Messages logged at WARNING or above while the test runs."""
    logger = get_logger()
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
