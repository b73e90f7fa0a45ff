"""
Preview sandbox document generator.

Builds a standalone HTML page that renders a generated {jsx, css}
component. React, ReactDOM and Babel standalone load from CDN and the
component is transpiled client-side, so there is no build step.

The JSX is untrusted model output. It is carried as inert JSON data,
never spliced into a script, and both failure modes are contained:
- transpile/evaluation failure renders a "Compilation Error" panel
- render failure is caught by an error boundary ("Render Error" panel)

Serve the page with PREVIEW_CSP so it runs in an opaque origin and
cannot reach the host page's cookies, storage, or DOM.
"""

from __future__ import annotations

import json
import re

PREVIEW_CSP = "sandbox allow-scripts"

# Capitalised function/const declarations, used when there is no default export
_COMPONENT_NAME = re.compile(r"(?:function\s+([A-Z][A-Za-z0-9_]*)|(?:const|let|var)\s+([A-Z][A-Za-z0-9_]*)\s*=)")
_PREFERRED_NAMES = ("GeneratedComponent", "Component", "App")


def render_preview_document(jsx: str, css: str = "", title: str = "Component Preview") -> str:
    """
    Render a complete sandbox HTML page for one component.

    Args:
        jsx: Component source (default-exported functional component)
        css: Supplementary stylesheet text
        title: Page title

    Returns:
        Complete HTML string
    """
    source_json = _script_safe_json(jsx)
    candidates_json = _script_safe_json(_candidate_names(jsx))

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{_escape_html(title)}</title>
<script crossorigin src="https://unpkg.com/react@18/umd/react.development.js"></script>
<script crossorigin src="https://unpkg.com/react-dom@18/umd/react-dom.development.js"></script>
<script crossorigin src="https://unpkg.com/@babel/standalone/babel.min.js"></script>
<script src="https://cdn.tailwindcss.com"></script>
<style>
{PREVIEW_CSS}
</style>
<style>
{_style_safe(css)}
</style>
</head>
<body>
<div id="root"></div>
<script type="application/json" id="component-source">{source_json}</script>
<script type="application/json" id="component-candidates">{candidates_json}</script>
<script>
{COMPILE_RUNTIME}
{SANDBOX_RUNTIME}
</script>
</body>
</html>"""


def render_placeholder_document() -> str:
    """Page shown before a session has any component."""
    return (
        '<!DOCTYPE html><html><body style="background:#f9fafb;'
        "display:flex;align-items:center;justify-content:center;"
        'height:100vh;font-family:sans-serif;color:#6b7280;font-size:14px;">'
        "Send a message in the chat to generate your first React component.</body></html>"
    )


def _candidate_names(jsx: str) -> list[str]:
    """Component names to try, in order, when there is no default export."""
    found: list[str] = []
    for match in _COMPONENT_NAME.finditer(jsx):
        name = match.group(1) or match.group(2)
        if name not in found:
            found.append(name)
    preferred = [n for n in _PREFERRED_NAMES if n in found]
    return preferred + [n for n in found if n not in preferred]


def _script_safe_json(value: object) -> str:
    """JSON that cannot terminate the surrounding <script> element."""
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def _style_safe(css: str) -> str:
    """Keep user CSS from closing its <style> element."""
    return re.sub(r"</(style)", r"<\\/\1", css, flags=re.IGNORECASE)


def _escape_html(text: str) -> str:
    """HTML-escape text for safe embedding."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


# ─────────────────────────────────────────────────────────────────────────────
# CSS - preview chrome and error panels
# ─────────────────────────────────────────────────────────────────────────────

PREVIEW_CSS = """
body {
  margin: 0;
  padding: 20px;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', sans-serif;
  background: #f9fafb;
  min-height: 100vh;
}
.preview-container {
  background: white;
  border-radius: 8px;
  padding: 24px;
  box-shadow: 0 1px 3px 0 rgba(0, 0, 0, 0.1);
  min-height: calc(100vh - 88px);
}
.error-container {
  background: #fef2f2;
  border: 1px solid #fecaca;
  border-radius: 8px;
  padding: 16px;
  color: #dc2626;
}
.error-container h3 {
  margin: 0 0 8px 0;
  font-size: 16px;
  font-weight: 600;
}
.error-container p {
  margin: 0 0 8px 0;
  font-size: 14px;
}
.error-container pre {
  font-size: 12px;
  overflow: auto;
  background: #fff;
  padding: 8px;
  border-radius: 4px;
  white-space: pre-wrap;
}
"""

# ─────────────────────────────────────────────────────────────────────────────
# Compiler - transpile and evaluate component source into a component value
# ─────────────────────────────────────────────────────────────────────────────

# Free of DOM access so it can also run under node with @babel/standalone
COMPILE_RUNTIME = r"""
function compileComponent(Babel, React, ReactDOM, source, candidates) {
  var modules = { 'react': React, 'react-dom': ReactDOM, 'react-dom/client': ReactDOM };
  function sandboxRequire(name) {
    if (Object.prototype.hasOwnProperty.call(modules, name)) return modules[name];
    throw new Error('Module "' + name + '" is not available in the preview');
  }

  // Only the model's source goes through Babel: the commonjs transform
  // rejects free references to `exports` inside an ES module.
  var compiled = Babel.transform(source, {
    filename: 'GeneratedComponent.tsx',
    presets: [
      ['typescript', { isTSX: true, allExtensions: true }],
      'react',
      ['env', { modules: 'commonjs' }]
    ]
  }).code;

  // Runs after the compiled module body, where its declarations are in scope
  var trailer = candidates.map(function (name) {
    return 'if (!exports.default && typeof ' + name + " === 'function') exports.default = " + name + ';';
  }).join('\n');

  var exportsObj = {};
  var moduleObj = { exports: exportsObj };
  var evaluate = new Function(
    'React', 'ReactDOM', 'require', 'exports', 'module',
    'useState', 'useEffect', 'useRef', 'useMemo', 'useCallback', 'useReducer', 'useContext', 'Fragment',
    compiled + '\n' + trailer + '\nreturn module.exports;'
  );
  var result = evaluate(
    React, ReactDOM, sandboxRequire, exportsObj, moduleObj,
    React.useState, React.useEffect, React.useRef, React.useMemo, React.useCallback,
    React.useReducer, React.useContext, React.Fragment
  );
  var component = (result && result.default) || exportsObj.default;
  if (!component || (typeof component !== 'function' && typeof component !== 'object')) {
    throw new Error('No component found. Export a function component as default.');
  }
  return component;
}
"""

# ─────────────────────────────────────────────────────────────────────────────
# Runtime - mount the compiled component inside an error boundary
# ─────────────────────────────────────────────────────────────────────────────

SANDBOX_RUNTIME = r"""
(function () {
  var container = document.getElementById('root');
  var h = React.createElement;

  function readJson(id) {
    return JSON.parse(document.getElementById(id).textContent);
  }

  function errorPanel(title, intro, error) {
    return h('div', { className: 'error-container' },
      h('h3', null, title),
      h('p', null, intro),
      h('pre', null, String(error && error.stack ? error.message || error : error))
    );
  }

  class ErrorBoundary extends React.Component {
    constructor(props) {
      super(props);
      this.state = { error: null };
    }
    static getDerivedStateFromError(error) {
      return { error: error };
    }
    componentDidCatch(error) {
      console.error('Render Error:', error);
    }
    render() {
      if (this.state.error) {
        return errorPanel('Render Error', 'There was an error rendering this component:', this.state.error);
      }
      return this.props.children;
    }
  }

  var GeneratedComponent;
  try {
    GeneratedComponent = compileComponent(
      Babel, React, ReactDOM, readJson('component-source'), readJson('component-candidates')
    );
  } catch (error) {
    console.error('Component Error:', error);
    ReactDOM.createRoot(container).render(
      errorPanel('Compilation Error', 'There was an error compiling this component:', error)
    );
    return;
  }

  ReactDOM.createRoot(container).render(
    h('div', { className: 'preview-container' },
      h(ErrorBoundary, null, h(GeneratedComponent))
    )
  );
})();
"""
