"""
Application services: the dependency container.
"""
