"""Zip export of a session's current component."""

from __future__ import annotations

import io
import json
import re
import zipfile

from backend.errors import NoComponentError
from backend.models.session import Component

COMPONENT_NAME = "GeneratedComponent"

PACKAGE_JSON = {
    "name": "generated-component",
    "version": "1.0.0",
    "dependencies": {
        "react": "^18.0.0",
        "react-dom": "^18.0.0",
        "@types/react": "^18.0.0",
        "@types/react-dom": "^18.0.0",
    },
    "devDependencies": {
        "typescript": "^5.0.0",
    },
}


def _readme(has_css: bool) -> str:
    css_line = f"- `{COMPONENT_NAME}.css` - Custom styles\n" if has_css else ""
    return f"""# Generated Component

This component was generated using the AI Component Generator.

## Installation

```bash
npm install
```

## Usage

```tsx
import {COMPONENT_NAME} from './{COMPONENT_NAME}'

function App() {{
  return <{COMPONENT_NAME} />
}}
```

## Files

- `{COMPONENT_NAME}.tsx` - The main component
{css_line}- `package.json` - Dependencies
"""


def export_filename(session_name: str | None) -> str:
    """Attachment filename derived from the session name."""
    stem = re.sub(r"[^A-Za-z0-9._ -]+", "", session_name or "").strip(" .")
    return f"{stem or 'component'}.zip"


def build_component_zip(component: Component) -> bytes:
    """
    Package a component as a small npm project.

    Args:
        component: The component to export

    Returns:
        Zip archive bytes

    Raises:
        NoComponentError: If the component has no JSX
    """
    if component.is_empty:
        raise NoComponentError("Session has no component to export.")

    has_css = bool(component.css.strip())
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(f"{COMPONENT_NAME}.tsx", component.jsx)
        if has_css:
            archive.writestr(f"{COMPONENT_NAME}.css", component.css)
        archive.writestr("package.json", json.dumps(PACKAGE_JSON, indent=2))
        archive.writestr("README.md", _readme(has_css))
    return buffer.getvalue()
