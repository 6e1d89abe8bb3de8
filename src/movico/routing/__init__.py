"""Routing — route descriptors, controllers, and the compiled route table.

Controllers describe routes declaratively; registration binds them into
a ``Router`` whose trie is compiled read-only before traffic starts.
"""
