"""Addon namespace used by tests in place of ``servicebay.addons``."""
