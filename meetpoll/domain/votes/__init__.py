"""Vote aggregate store"""
