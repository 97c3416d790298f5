"""Optional router plugins.

Nothing is imported here: ``smartnav.plugins`` stays free of side effects.
Each concrete module (``logging``) registers its plugin class with ``Router``
when imported; ``smartnav/__init__.py`` imports the built-in ones.
"""

__all__: list[str] = []
