"""Core seeding engine, data store, and sampling APIs for Choice Chorus."""

from __future__ import annotations


def build_engine(config=None):
    from chorus.core.engine import build_engine as _build_engine

    return _build_engine(config)


def load_config(environ=None):
    from chorus.core.config import load_config as _load_config

    return _load_config(environ)


__all__ = ["build_engine", "load_config"]
