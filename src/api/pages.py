"""
HTML pages of the operator front end
"""

from html import escape
from typing import Callable, Dict, List, Optional, Tuple

from devices import DeviceState, RgbwState, ShcntState
from discovery.models import ServiceAddress
from gateway_errors import GatewayError

_STYLE = """
body { font-family: sans-serif; margin: 2em; background: #f4f5f7; color: #222; }
table { border-collapse: collapse; }
td, th { padding: 0.3em 1em; border-bottom: 1px solid #ccc; text-align: left; }
form label { display: block; margin: 0.6em 0; }
.error { color: #a00; }
"""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{escape(title)}</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n<body>\n"
        f"{body}\n"
        "</body>\n</html>\n"
    )


def render_index() -> str:
    return _page("Home", (
        "<h1>Home</h1>\n"
        '<p><a href="/services">Services</a></p>'
    ))


def render_services(services: List[Tuple[str, str, Optional[str], ServiceAddress]]) -> str:
    """services: (id, label, type, address) rows, already sorted"""
    rows = "\n".join(
        "<tr>"
        f'<td><a href="/service/{escape(service_id, quote=True)}">{escape(label)}</a></td>'
        f"<td>{escape(service_type or '-')}</td>"
        f"<td>{escape(str(address))}</td>"
        "</tr>"
        for service_id, label, service_type, address in services
    )
    if not services:
        rows = '<tr><td colspan="3">No services discovered yet</td></tr>'
    return _page("Services", (
        "<h1>Services</h1>\n"
        "<table>\n<tr><th>Name</th><th>Type</th><th>Address</th></tr>\n"
        f"{rows}\n</table>\n"
        '<p><a href="/">Home</a></p>'
    ))


def _render_rgbw(state: RgbwState) -> str:
    return (
        f"<p>Color: #{escape(state.rgb)}, white: {state.w}</p>\n"
        '<form method="post">\n'
        f'<label>Color <input type="color" name="rgb" value="#{escape(state.rgb, quote=True)}"></label>\n'
        f'<label>White <input type="number" name="w" min="0" max="255" value="{state.w}"></label>\n'
        '<button type="submit">Set</button>\n'
        "</form>"
    )


def _render_shcnt(state: ShcntState) -> str:
    return (
        f"<p>Position: {state.pos}</p>\n"
        '<form method="post">\n'
        f'<label>Position <input type="range" name="pos" min="0" max="255" value="{state.pos}"></label>\n'
        '<button type="submit">Set</button>\n'
        "</form>"
    )


DEVICE_PAGES: Dict[str, Callable] = {
    "rgbw": _render_rgbw,
    "shcnt": _render_shcnt,
}


def render_service(service_type: str, name: str, state: DeviceState) -> str:
    return _page(name, (
        f"<h1>{escape(name)}</h1>\n"
        f"{DEVICE_PAGES[service_type](state)}\n"
        '<p><a href="/services">Services</a></p>'
    ))


def render_error(error: GatewayError) -> str:
    return _page("Error", (
        f'<p class="error">Error: {escape(error.message)}</p>\n'
        '<p><a href="/services">Services</a></p>'
    ))
