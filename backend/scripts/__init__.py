"""
Backend Scripts Module

This module contains utility scripts for store setup and maintenance.

Available scripts:
    - ensure_schema.py: Creates or repairs tables and reports column drift
    - grant_admin.py: Adds an admin allow-list entry

Usage:
    python -m scripts.ensure_schema
    python -m scripts.grant_admin --actor-id U123 --email someone@example.com
"""
