"""Decoding of rustdoc ``search-index*.js`` payloads into ``Index`` values."""

from .dispatch import IndexVersion, decode, decode_crates, detect_version

__all__ = ["IndexVersion", "decode", "decode_crates", "detect_version"]
