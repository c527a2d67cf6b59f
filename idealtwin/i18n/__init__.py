"""Localization tables and lookup"""
