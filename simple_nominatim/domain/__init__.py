"""Domain Layer: value objects, errors, events and ports (interfaces).

Nothing in here performs I/O; infrastructure adapters implement the
interfaces and the core layer wires them together.
"""
