"""Preview server package for mdbuilder."""

from flask import Flask

from mdbuilder.config import BuilderConfig


def create_app(config: BuilderConfig, coordinator=None) -> Flask:
    """Application factory for the preview server."""
    from .app import build_app  # Import here to avoid circular imports

    return build_app(config.output_dir, coordinator)


__all__ = ["create_app"]
