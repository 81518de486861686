"""Relay core: models, codec, event protocol, streaming relay and non-stream path."""
