"""Business logic for the group-admin core.

Managers receive their collaborators (permission gate, registry view,
stores) at construction and return ``Outcome`` values, never raising for
expected conditions -- translating outcomes for a transport (CLI exit
codes, HTTP statuses) is the caller's responsibility.
"""
