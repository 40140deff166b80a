"""Greeting services: config fields, dependencies and interception."""
