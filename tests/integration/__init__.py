"""
Integration tests: engine, storage and HTTP layers against the bundled
WWI world.
"""
