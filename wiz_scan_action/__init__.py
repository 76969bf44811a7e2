"""Provision, verify and run the Wiz CLI as a build step."""
