"""Cross-boundary contract: wire models, envelopes, sessions, and handles.

Submodules are imported directly (e.g. ``from speech_bridge.bridge import
abi``); this package module stays import-free so that engine and core
modules can use bridge.errors without pulling in the session layer.
"""
