"""Command-line front end for rexraster."""
