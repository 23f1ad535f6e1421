"""
Mosques module - mosque records and their verification codes.
"""
