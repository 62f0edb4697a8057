"""Domain Event definitions.

Represents significant occurrences inside the request pipeline that other
parts of the system (logging, tests) might react to.
"""
