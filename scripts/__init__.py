"""
Backend Scripts Module

Utility scripts for database setup and maintenance.

Available scripts:
    - seed_data.py: Creates the first admin and a sample client request
    - check_admins.py: Lists admin accounts

Usage:
    python -m scripts.seed_data
"""
