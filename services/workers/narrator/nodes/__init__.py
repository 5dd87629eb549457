from .profile import infer_types_node, summarize_node
from .request import build_request_node
from .generate import generate_node
from .render import render_node

__all__ = [
    "infer_types_node",
    "summarize_node",
    "build_request_node",
    "generate_node",
    "render_node",
]
