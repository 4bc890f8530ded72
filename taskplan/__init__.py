"""
Migration Task Planner

Compiles the object configurations of a data migration job into resolved,
validated query plans.

Supports:
- Shorthand queries with multiselect keywords ("all", "creatable_true", ...)
- Injection of the record id, external id and person account fields
- Field expansion and validation against source and target schemas
- Delete query derivation
- Parent lookup and master-detail dependency edges for job scheduling
"""

__version__ = "0.1.0"
