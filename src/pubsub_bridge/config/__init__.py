"""Packaged default settings for pubsub_bridge."""
