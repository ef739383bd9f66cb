"""Scheduled-notification dispatcher for the Sproutify admin console.

The package re-exports nothing; importers reach into the layered
subpackages (``domain``, ``application``, ``infrastructure`` and
``interfaces``) directly.
"""
