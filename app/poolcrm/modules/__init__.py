"""
Feature modules live under this package.

Keep module boundaries clean: each module owns its routes/templates/models,
while reusing platform primitives (config, CSRF, the Keap client).
"""
