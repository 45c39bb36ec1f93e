"""Appwrite function entrypoints.

Each module exposes ``main(context)`` as deployed on the Appwrite Python
runtime.
"""
