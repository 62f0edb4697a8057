"""Domain Interfaces (Ports):

Abstract Base Classes for the cache, the HTTP transport and the user
interface. The request pipeline and the command handler only talk to these
contracts; concrete adapters live in the infrastructure layer.
"""
