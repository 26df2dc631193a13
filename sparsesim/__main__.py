"""Main entry point for running sparsesim as a module."""

from .cli import main

if __name__ == "__main__":
    main()
