"""Multiguard API package."""
