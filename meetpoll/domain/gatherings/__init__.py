"""Gathering store"""
