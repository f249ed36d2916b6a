"""
Selection Domain - assembly group selection and its validation.

A Template is composed by picking assemblies from the Assembly Groups of
each category; the validator enforces the group rules and prices the picks.
"""
