"""
Entry point for running deemix-wrapper as a module: python -m deemix_wrapper
"""

from deemix_wrapper.cli.commands import app

if __name__ == "__main__":
    app()
