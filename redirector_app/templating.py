"""
Challenge page rendering.

The page ships the destination as JSON and navigates client-side only after
its own automation check passes; otherwise it shows a denial and stays put.
"""

from jinja2 import Environment, PackageLoader, select_autoescape

_env = Environment(
    loader=PackageLoader("redirector_app", "templates"),
    autoescape=select_autoescape(["html"]),
)


def render_challenge(destination: str) -> str:
    return _env.get_template("challenge.html").render(destination=destination)
