"""ASGI entrypoint for the meal tracker API."""

from protein_path.api.app import create_app
from protein_path.containers import build_container

app = create_app(build_container())
