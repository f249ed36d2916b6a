"""
BOM Domain - Bill of Materials engines.

The composition is fixed at two levels:
- Assembly contains Materials
- Template (and the Project built from it) contains Assemblies

Explosion flattens a composition into per-material lines, consolidation
merges identical materials, rollup aggregates costs and percentages.
"""
