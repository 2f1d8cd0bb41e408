from __future__ import annotations

import base64
from pathlib import Path

import pytest

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

PAGE = """<!DOCTYPE html>
<html>
<head>
<title>Demo</title>
<link rel="stylesheet" href="./style.css">
<script src="script.js"></script>
</head>
<body>
<h1>Hello</h1>
<img alt="pixel" src="./pic.png" width="1">
</body>
</html>
"""


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_1X1


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small page with a stylesheet, a script and an image next to it."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "a.html").write_text(PAGE, encoding="utf-8")
    (root / "style.css").write_text("body{color:red}", encoding="utf-8")
    (root / "script.js").write_text('console.log("inlined");', encoding="utf-8")
    (root / "pic.png").write_bytes(PNG_1X1)
    return root
