"""
University Dashboard
AI refresh module.

Submodules:
    - gateway: transports (direct / proxy / stub), prompt and response normalisation
    - refresh: applies AI results to a view's cells and history
"""
