"""Command line interface for dbfacade."""
