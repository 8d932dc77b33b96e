"""Command-line front end for docsnap."""
