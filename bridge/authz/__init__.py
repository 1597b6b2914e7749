"""Write authorization for datapoints.

The allow-list is derived from the field and project instruction documents, merged
additively, and consulted before every write. There are no per-caller roles: one
global allow-list applies to every tool call.
"""
