"""Builtins — the named predicates and macros a program can call."""
