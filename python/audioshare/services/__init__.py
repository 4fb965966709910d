"""Service layer.

All domain orchestration lives here. Routes may not contain domain logic or
raw DB access - they must call these functions.
"""
