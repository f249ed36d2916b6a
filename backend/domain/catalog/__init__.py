"""
Catalog Domain - reference records and the catalog snapshot port.

This domain handles the construction catalog:
- Materials (priced, purchasable)
- Assemblies (materials with per-assembly quantities)
- Categories and Assembly Groups (selection rules)
- Templates and Projects (compositions of assemblies)
"""
