"""Capability surface capture, persistence and decoy serving."""

from .client import ExtractionOptions, SchemaExtractor, TargetSpec, clone_target
from .loader import dump_surface, load_surface, load_surface_text, write_surface
from .registry import HandlerSet
from .schema import CapabilitySurface
from .server import build_decoy_server

__all__ = [
    "CapabilitySurface",
    "ExtractionOptions",
    "HandlerSet",
    "SchemaExtractor",
    "TargetSpec",
    "build_decoy_server",
    "clone_target",
    "dump_surface",
    "load_surface",
    "load_surface_text",
    "write_surface",
]
