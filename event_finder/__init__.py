"""Notification engine for the Local Event Finder application.

The package is organised in layers: ``domain`` holds plain entities and
exceptions, ``application`` the use cases (dispatcher, reminder sweep, RSVP
hooks), ``infrastructure`` the database, email and realtime adapters and
``interfaces`` the HTTP API.
"""
