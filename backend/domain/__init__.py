"""
Domain layer.

Pure Python business logic: catalog records, the assembly group validator
and the BOM explosion / consolidation / rollup engines. No Django imports.
"""
