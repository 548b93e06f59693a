"""Test package for the exam trainer.

Core tests drive the session, scoring and guidance modules directly with a
fake clock; the smoke tests run the pygame host headlessly using the SDL
dummy video driver. Run ``pytest`` from the project root.
"""
