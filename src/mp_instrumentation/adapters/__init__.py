"""Adapters – bindings of the library's ports onto concrete backends."""
