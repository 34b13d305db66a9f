"""
Entry point for running local-setup as a module.

Usage: python -m localsetup [options] LOCALDIR
"""

from localsetup.cli import main

if __name__ == "__main__":
    main()
