"""
University Dashboard
Blueprint registry. Each module exposes one blueprint under /api/v1.
"""
