"""
Admins module - mosque admin accounts and their lifecycle.
"""
