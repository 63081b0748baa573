"""Command line front end for proctemp.

The Typer application lives in ``cli.app``; the package root does not
re-export it so that ``cli.app`` keeps resolving to the module, which tests
patch attributes on.
"""

__all__ = []
