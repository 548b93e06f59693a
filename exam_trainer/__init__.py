"""Timed test-taking and scoring engine with a pygame host."""
